"""
Phase progress state machine.

Called after every recorded result to move a tournament forward:

- ROUND_ROBIN: FINISHED once every match is COMPLETED
- KNOCKOUT: each completed round produces the next one until a placement
  round is complete
- GROUP_STAGE_KNOCKOUT: a completed group stage produces the phase 2
  playoffs, which then advance like a knockout

Generation is idempotent. A next round (or the playoff seeding) that already
exists is only replaced while none of its matches has been played and the
recomputed pairings differ, which happens when an upstream result is
corrected. Once any of its matches is played it is frozen and the walk
carries on from it, so later rounds still advance and a finished bracket is
finalized again.
"""

from typing import List, Mapping, Optional
from enum import Enum
import logging

from padeltour.tournament_core.knockout import (
    can_advance,
    generate_next_round,
    generate_playoff_matches,
    is_terminal_round,
    same_pairings,
)
from padeltour.tournament_core.points import award_tournament_points, calculate_final_positions
from padeltour.tournament_core.structure import (
    Match,
    MatchStatus,
    Tournament,
    TournamentStatus,
    TournamentType,
    all_completed,
)
from padeltour.tournament_core.tiebreaks import group_standings

logger = logging.getLogger(__name__)


class Advancement(Enum):
    """What check_and_advance_phase did."""

    NONE = "none"
    ROUND_GENERATED = "round-generated"
    ROUND_REGENERATED = "round-regenerated"
    PHASE_ADVANCED = "phase-advanced"
    PLAYOFFS_RESEEDED = "playoffs-reseeded"
    FINISHED = "finished"
    REFINALIZED = "refinalized"


def _unplayed(matches: List[Match]) -> bool:
    return all(match.status == MatchStatus.SCHEDULED for match in matches)


def _replace(tournament: Tournament, old: List[Match], new: List[Match]) -> None:
    tournament.remove_matches(old)
    tournament.add_matches(new)


def advance_bracket(tournament: Tournament, phase: int) -> Advancement:
    """
    Walk the rounds of a bracket phase and generate what is missing.

    Returns FINISHED when the last round of the phase is a complete
    placement round; the caller decides what finishing means.
    """
    rounds = tournament.rounds(phase)
    for number, matches in rounds.items():
        if not all_completed(matches):
            return Advancement.NONE

        if is_terminal_round(matches):
            return Advancement.FINISHED

        if not can_advance(matches):
            logger.warning(
                "Tournament %s: no continuation defined after round %d of phase %d (%d matches)",
                tournament.id, number, phase, len(matches),
            )
            return Advancement.NONE

        generated = generate_next_round(tournament.id, phase, matches)
        existing = rounds.get(number + 1)

        if not existing:
            tournament.add_matches(generated)
            logger.info(
                "Tournament %s: generated round %d of phase %d (%d matches)",
                tournament.id, number + 1, phase, len(generated),
            )
            return Advancement.ROUND_GENERATED

        if same_pairings(existing, generated):
            continue

        if not _unplayed(existing):
            logger.warning(
                "Tournament %s: round %d of phase %d no longer matches its feeder round "
                "but has already started, keeping it",
                tournament.id, number + 1, phase,
            )
            continue

        _replace(tournament, existing, generated)
        logger.warning(
            "Tournament %s: regenerated round %d of phase %d after a corrected result",
            tournament.id, number + 1, phase,
        )
        return Advancement.ROUND_REGENERATED

    return Advancement.NONE


def advance_group_stage(tournament: Tournament) -> Advancement:
    """Seed (or reseed) the playoffs from the groups, then advance them."""
    if not all_completed(tournament.phase_matches(1)):
        return Advancement.NONE

    playoffs = generate_playoff_matches(tournament.id, group_standings(tournament, 1))
    phase_two = tournament.phase_matches(2)

    if not phase_two:
        tournament.add_matches(playoffs)
        tournament.current_phase = 2
        tournament.status = TournamentStatus.PHASE_1_COMPLETE
        logger.info(
            "Tournament %s: group stage complete, %d playoff matches scheduled",
            tournament.id, len(playoffs),
        )
        return Advancement.PHASE_ADVANCED

    if not same_pairings(tournament.round_matches(2, 1), playoffs):
        if _unplayed(phase_two):
            _replace(tournament, phase_two, playoffs)
            logger.warning(
                "Tournament %s: playoffs reseeded after a corrected group result",
                tournament.id,
            )
            return Advancement.PLAYOFFS_RESEEDED
        logger.warning(
            "Tournament %s: group standings changed but playoffs have started, keeping them",
            tournament.id,
        )

    return advance_bracket(tournament, 2)


def finalize_tournament(
    tournament: Tournament, book, point_tables: Optional[Mapping] = None
) -> Advancement:
    """Mark a tournament FINISHED and award positions and points.

    Finalizing again (after a corrected result) replaces the earlier award.
    """
    already_finished = tournament.status == TournamentStatus.FINISHED
    tournament.status = TournamentStatus.FINISHED

    positions = calculate_final_positions(tournament)
    award_tournament_points(tournament, positions, book, point_tables)

    if already_finished:
        logger.info("Tournament %s: final positions recalculated", tournament.id)
        return Advancement.REFINALIZED

    logger.info("Tournament %s finished", tournament.id)
    return Advancement.FINISHED


def check_and_advance_phase(
    tournament: Tournament, book, point_tables: Optional[Mapping] = None
) -> Advancement:
    """
    Advance a tournament after a result has been recorded.

    Args:
        tournament: Tournament whose matches were just updated
        book: PlayerStatsBook receiving points when the tournament finishes
        point_tables: Optional category point table overrides

    Returns:
        The Advancement that was performed

    Raises:
        BracketGenerationException: If a round cannot be derived from its results
    """
    if tournament.type == TournamentType.ROUND_ROBIN:
        done = all_completed(tournament.matches)
        advancement = Advancement.FINISHED if done else Advancement.NONE
    elif tournament.type == TournamentType.KNOCKOUT:
        advancement = advance_bracket(tournament, 1)
    else:
        advancement = advance_group_stage(tournament)

    if advancement == Advancement.FINISHED:
        return finalize_tournament(tournament, book, point_tables)
    return advancement
