"""
Knockout bracket utilities for playoff generation and round advancement.

This module provides functionality for:
- Determining winners and losers of completed bracket matches
- Generating the next round of a bracket from the previous round's results
- Seeding phase 2 playoffs from group stage standings
- Detecting terminal (placement) rounds

Every generated match carries a BracketSlot naming its role. Advancement is
driven by those slots, match numbers only order the matches:

- QUARTERFINAL x4: winners of 1/2 and 3/4 meet in SEMIFINALs, losers of the
  same pairs meet in SEMIFINAL_5_8s
- SEMIFINAL x2: winners play the FINAL, losers the THIRD_PLACE match
- SEMIFINAL_5_8 x2: FIFTH_PLACE and SEVENTH_PLACE matches
- SEMIFINAL_9_12 x2: NINTH_PLACE and ELEVENTH_PLACE matches
"""

from typing import Dict, List, Sequence, Tuple
import logging

from padeltour.tournament_core.exceptions import (
    BracketGenerationException,
    UnsupportedBracketException,
)
from padeltour.tournament_core.structure import (
    BracketSlot,
    Match,
    MatchStatus,
    Team,
    TeamStanding,
)
from padeltour.tournament_core.tiebreaks import rank_standings

logger = logging.getLogger(__name__)

WINNER = "winner"
LOSER = "loser"

# semifinal slot -> (slot for the winners' match, slot for the losers' match)
SEMIFINAL_OUTCOMES = {
    BracketSlot.SEMIFINAL: (BracketSlot.FINAL, BracketSlot.THIRD_PLACE),
    BracketSlot.SEMIFINAL_5_8: (BracketSlot.FIFTH_PLACE, BracketSlot.SEVENTH_PLACE),
    BracketSlot.SEMIFINAL_9_12: (BracketSlot.NINTH_PLACE, BracketSlot.ELEVENTH_PLACE),
}

QUARTERFINAL_OUTCOMES = (BracketSlot.SEMIFINAL, BracketSlot.SEMIFINAL_5_8)

# (first source index, second source index, outcome taken from both, new slot)
Crossing = Tuple[int, int, str, BracketSlot]


def winning_team(match: Match) -> Team:
    """Return the team that won a completed bracket match."""
    _require_decided(match)
    return match.team1 if match.winner_team == 1 else match.team2


def losing_team(match: Match) -> Team:
    """Return the team that lost a completed bracket match."""
    _require_decided(match)
    return match.team2 if match.winner_team == 1 else match.team1


def _require_decided(match: Match) -> None:
    if not match.is_completed:
        raise BracketGenerationException(f"Match {match} has not been played")
    if match.winner_team not in (1, 2):
        raise BracketGenerationException(
            f"Match {match} has no winner and cannot feed a bracket"
        )


def is_terminal_round(matches: Sequence[Match]) -> bool:
    """A round is terminal when every match in it decides final positions."""
    return bool(matches) and all(match.slot.is_placement for match in matches)


def can_advance(matches: Sequence[Match]) -> bool:
    """Whether a next round is defined for this round's bracket shape."""
    return bool(matches) and not is_terminal_round(matches) and not any(
        match.slot in (BracketSlot.FIRST_ROUND, BracketSlot.GROUP) for match in matches
    )


def _crossings_for_round(matches: List[Match]) -> List[Crossing]:
    slots = [match.slot for match in matches]

    if BracketSlot.FIRST_ROUND in slots:
        raise UnsupportedBracketException(
            f"No advancement defined after a first round of {len(matches)} matches"
        )

    if all(slot == BracketSlot.QUARTERFINAL for slot in slots):
        if len(matches) != 4:
            raise BracketGenerationException(
                f"Expected 4 quarterfinals, got {len(matches)}"
            )
        winners_slot, losers_slot = QUARTERFINAL_OUTCOMES
        return [
            (0, 1, WINNER, winners_slot),
            (2, 3, WINNER, winners_slot),
            (0, 1, LOSER, losers_slot),
            (2, 3, LOSER, losers_slot),
        ]

    if any(slot not in SEMIFINAL_OUTCOMES for slot in slots):
        raise BracketGenerationException(
            f"Cannot advance a round with slots {[slot.value for slot in slots]}"
        )

    crossings = []
    for semifinal_slot, (winners_slot, losers_slot) in SEMIFINAL_OUTCOMES.items():
        indexes = [i for i, slot in enumerate(slots) if slot == semifinal_slot]
        if not indexes:
            continue
        if len(indexes) != 2:
            raise BracketGenerationException(
                f"Expected 2 {semifinal_slot.value} matches, got {len(indexes)}"
            )
        first, second = indexes
        crossings.append((first, second, WINNER, winners_slot))
        crossings.append((first, second, LOSER, losers_slot))

    return crossings


def generate_next_round(tournament_id, phase: int, previous_round: Sequence[Match]) -> List[Match]:
    """
    Generate the next round of a bracket from a completed round.

    Args:
        tournament_id: Owning tournament
        phase: Phase the bracket belongs to
        previous_round: Every match of the completed round

    Returns:
        New SCHEDULED matches numbered after the previous round

    Raises:
        UnsupportedBracketException: For first rounds of 6 or 12 team knockouts
        BracketGenerationException: If the round is malformed, unplayed or tied
    """
    matches = sorted(previous_round, key=lambda m: m.match_number)
    if not matches:
        raise BracketGenerationException("Cannot advance an empty round")

    crossings = _crossings_for_round(matches)
    round_number = matches[0].round_number + 1
    match_number = max(m.match_number for m in matches) + 1

    outcome_of = {WINNER: winning_team, LOSER: losing_team}
    next_round = []
    for first, second, outcome, slot in crossings:
        pick = outcome_of[outcome]
        next_round.append(
            Match.between(
                tournament_id,
                pick(matches[first]),
                pick(matches[second]),
                phase=phase,
                round_number=round_number,
                match_number=match_number,
                slot=slot,
                status=MatchStatus.SCHEDULED,
            )
        )
        match_number += 1

    logger.debug(
        "Derived round %d of phase %d: %s",
        round_number, phase, ", ".join(str(m) for m in next_round),
    )
    return next_round


def _playoff_match(tournament_id, number: int, slot: BracketSlot,
                   team_a: TeamStanding, team_b: TeamStanding) -> Match:
    return Match.between(
        tournament_id,
        team_a.team,
        team_b.team,
        phase=2,
        round_number=1,
        match_number=number,
        slot=slot,
        status=MatchStatus.SCHEDULED,
    )


def _same_group(a: TeamStanding, b: TeamStanding) -> bool:
    return a.group_number is not None and a.group_number == b.group_number


def seed_bracket(seeds: Sequence[TeamStanding]) -> List[Tuple[TeamStanding, TeamStanding]]:
    """Pair four seeds as 1v4 and 2v3, avoiding rematches of the same group.

    Falls back to 1v3/2v4 and then 1v2/3v4 when a pairing would bring two
    teams from the same group together.
    """
    if len(seeds) != 4:
        raise BracketGenerationException(f"A bracket needs 4 seeds, got {len(seeds)}")

    candidates = (((0, 3), (1, 2)), ((0, 2), (1, 3)), ((0, 1), (2, 3)))
    for candidate in candidates:
        if not any(_same_group(seeds[a], seeds[b]) for a, b in candidate):
            return [(seeds[a], seeds[b]) for a, b in candidate]
    (a1, b1), (a2, b2) = candidates[0]
    return [(seeds[a1], seeds[b1]), (seeds[a2], seeds[b2])]


def generate_playoff_matches(tournament_id, ranked_groups: Dict[int, List[TeamStanding]]) -> List[Match]:
    """
    Generate phase 2 round 1 from ranked group standings.

    - 1 group: FINAL 1st v 2nd and THIRD_PLACE 3rd v 4th
    - 2 groups: SEMIFINALs 1A v 2B, 2A v 1B and SEMIFINAL_5_8s 3A v 4B, 3B v 4A
    - 3 groups: three brackets of four (1st-4th, 5th-8th, 9th-12th) built from
      cross-group comparison of group positions

    Args:
        tournament_id: Owning tournament
        ranked_groups: Group number -> standings ranked best first

    Raises:
        BracketGenerationException: For unsupported group counts or sizes
    """
    groups = [ranked_groups[number] for number in sorted(ranked_groups)]

    if len(groups) == 1:
        standings = groups[0]
        if len(standings) < 4:
            raise BracketGenerationException(
                f"Playoffs need 4 ranked teams, got {len(standings)}"
            )
        return [
            _playoff_match(tournament_id, 1, BracketSlot.FINAL, standings[0], standings[1]),
            _playoff_match(tournament_id, 2, BracketSlot.THIRD_PLACE, standings[2], standings[3]),
        ]

    for standings in groups:
        if len(standings) != 4:
            raise BracketGenerationException(
                f"Every group needs 4 ranked teams, got {len(standings)}"
            )

    if len(groups) == 2:
        group_a, group_b = groups
        return [
            _playoff_match(tournament_id, 1, BracketSlot.SEMIFINAL, group_a[0], group_b[1]),
            _playoff_match(tournament_id, 2, BracketSlot.SEMIFINAL, group_a[1], group_b[0]),
            _playoff_match(tournament_id, 3, BracketSlot.SEMIFINAL_5_8, group_a[2], group_b[3]),
            _playoff_match(tournament_id, 4, BracketSlot.SEMIFINAL_5_8, group_b[2], group_a[3]),
        ]

    if len(groups) == 3:
        return _generate_three_group_playoffs(tournament_id, groups)

    raise BracketGenerationException(f"No playoff format for {len(groups)} groups")


def _generate_three_group_playoffs(tournament_id, groups: List[List[TeamStanding]]) -> List[Match]:
    by_position = [rank_standings(g[position] for g in groups) for position in range(4)]
    firsts, seconds, thirds, fourths = by_position

    brackets = [
        (BracketSlot.SEMIFINAL, firsts + seconds[:1]),
        (BracketSlot.SEMIFINAL_5_8, seconds[1:] + thirds[:2]),
        (BracketSlot.SEMIFINAL_9_12, thirds[2:] + fourths),
    ]

    matches = []
    number = 1
    for slot, seeds in brackets:
        for team_a, team_b in seed_bracket(seeds):
            matches.append(_playoff_match(tournament_id, number, slot, team_a, team_b))
            number += 1
    return matches


def same_pairings(existing: Sequence[Match], generated: Sequence[Match]) -> bool:
    """Whether two versions of a round bring the same teams together in the same slots."""
    def layout(matches: Sequence[Match]) -> List[Tuple[BracketSlot, frozenset]]:
        return sorted(
            ((m.slot, frozenset((m.team1, m.team2))) for m in matches),
            key=lambda item: (item[0].value, sorted(str(t) for t in item[1])),
        )

    return layout(existing) == layout(generated)
