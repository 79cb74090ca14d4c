"""
Match result processing and cumulative player statistics.

This module provides functionality for:
- Validating submitted scores (negative scores, tie rules)
- Applying and reversing the statistical effect of a result on all four players
- Recording a result on its match and driving phase progress afterwards
- Recomputing a player's match statistics from scratch

Statistics are updated incrementally: a result is applied with a multiplier
of +1 and undone with -1 when it is corrected, so PlayerStats are never
rebuilt unless recalculate_player_stats is called explicitly.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Tuple
from enum import Enum
import logging

from padeltour.tournament_core.exceptions import (
    InvalidScoreException,
    MatchNotFoundException,
    ReverseNonexistentStatsException,
    TieNotAllowedException,
    TieRejection,
)
from padeltour.tournament_core.progress import check_and_advance_phase
from padeltour.tournament_core.structure import (
    Match,
    MatchStatus,
    PlayerStats,
    Tournament,
    TournamentResult,
    TournamentStatus,
    TournamentType,
)

logger = logging.getLogger(__name__)


class Outcome(Enum):
    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"


class PlayerStatsBook:
    """In-memory store of PlayerStats and TournamentResults.

    TournamentResults are keyed by (tournament_id, player_id) so that
    finalizing a tournament twice replaces rather than duplicates them.
    """

    def __init__(self):
        self.stats: Dict[str, PlayerStats] = {}
        self.results: Dict[Tuple[object, str], TournamentResult] = {}

    def get(self, player_id: str) -> Optional[PlayerStats]:
        return self.stats.get(player_id)

    def get_or_create(self, player_id: str) -> PlayerStats:
        if player_id not in self.stats:
            self.stats[player_id] = PlayerStats(player_id=player_id)
        return self.stats[player_id]

    def record_outcome(
        self,
        player_id: str,
        outcome: Outcome,
        games_for: int,
        games_against: int,
        reverse: bool = False,
    ) -> PlayerStats:
        """
        Apply (or undo) one match outcome for one player.

        Args:
            player_id: Player whose stats change
            outcome: WIN, LOSS or DRAW from the player's point of view
            games_for: Games won by the player's team
            games_against: Games won by the opposing team
            reverse: Undo a previously applied outcome instead of applying it

        Raises:
            ReverseNonexistentStatsException: When undoing for a player with no record
        """
        if reverse:
            stats = self.stats.get(player_id)
            if stats is None:
                raise ReverseNonexistentStatsException(player_id)
            multiplier = -1
        else:
            stats = self.get_or_create(player_id)
            multiplier = 1

        stats.total_matches += multiplier
        if outcome == Outcome.WIN:
            stats.matches_won += multiplier
            stats.sets_won += multiplier
        elif outcome == Outcome.LOSS:
            stats.matches_lost += multiplier
            stats.sets_lost += multiplier
        else:
            stats.matches_drawn += multiplier
        stats.games_won += multiplier * games_for
        stats.games_lost += multiplier * games_against
        stats.refresh_win_percentage()
        return stats

    def apply_match(self, match: Match, reverse: bool = False) -> None:
        """Apply (or undo) a completed match for all four of its players."""
        if reverse:
            missing = [p for p in match.players if p not in self.stats]
            if missing:
                raise ReverseNonexistentStatsException(missing[0])

        team1_games, team2_games = match.games()
        if match.winner_team == 1:
            team1_outcome, team2_outcome = Outcome.WIN, Outcome.LOSS
        elif match.winner_team == 2:
            team1_outcome, team2_outcome = Outcome.LOSS, Outcome.WIN
        else:
            team1_outcome = team2_outcome = Outcome.DRAW

        for player_id in match.team1.players:
            self.record_outcome(player_id, team1_outcome, team1_games, team2_games, reverse)
        for player_id in match.team2.players:
            self.record_outcome(player_id, team2_outcome, team2_games, team1_games, reverse)

    def get_result(self, tournament_id, player_id: str) -> Optional[TournamentResult]:
        return self.results.get((tournament_id, player_id))

    def store_result(self, result: TournamentResult) -> None:
        self.results[(result.tournament_id, result.player_id)] = result

    def tournament_results(self, tournament_id) -> List[TournamentResult]:
        return sorted(
            (r for (tid, _), r in self.results.items() if tid == tournament_id),
            key=lambda r: (r.final_position, r.player_id),
        )

    def player_results(self, player_id: str) -> List[TournamentResult]:
        return [r for (_, pid), r in self.results.items() if pid == player_id]

    def player_points(self) -> Dict[str, float]:
        """Player id -> total ranking points from every recorded tournament."""
        points: Dict[str, float] = {}
        for result in self.results.values():
            points[result.player_id] = points.get(result.player_id, 0) + result.total_points
        return points

    def leaderboard(self) -> List[PlayerStats]:
        return sorted(
            self.stats.values(),
            key=lambda s: (-s.tournament_points, -s.tournaments_won, s.player_id),
        )


def validate_result(tournament: Tournament, match: Match, team1_score, team2_score) -> None:
    """
    Check a submitted score without touching any record.

    Raises:
        InvalidScoreException: If a score is negative or not an integer
        TieNotAllowedException: If the score is tied where ties are not allowed
    """
    for score in (team1_score, team2_score):
        if isinstance(score, bool) or not isinstance(score, int):
            raise InvalidScoreException(f"Score must be an integer, got {score!r}")
        if score < 0:
            raise InvalidScoreException(f"Score cannot be negative: {score}")

    if team1_score == team2_score:
        if not tournament.allow_ties:
            raise TieNotAllowedException(TieRejection.TOURNAMENT)
        if match.phase != 1:
            raise TieNotAllowedException(TieRejection.PHASE)
        if tournament.type == TournamentType.KNOCKOUT:
            raise TieNotAllowedException(TieRejection.FORMAT)


def submit_result(
    tournament: Tournament,
    match_id,
    team1_score: int,
    team2_score: int,
    book: PlayerStatsBook,
    point_tables: Optional[Mapping] = None,
):
    """
    Record the score of a match and advance the tournament.

    A match that is already COMPLETED may be resubmitted: its previous
    result is withdrawn from every player's stats before the new one is
    applied.

    Args:
        tournament: Tournament owning the match
        match_id: Id of the match within the tournament
        team1_score: Games won by team A in the single set
        team2_score: Games won by team B in the single set
        book: Player statistics to update
        point_tables: Optional category point table overrides

    Returns:
        The Advancement performed by the phase state machine

    Raises:
        MatchNotFoundException: If the tournament has no such match
        InvalidScoreException, TieNotAllowedException: On invalid scores,
            in which case nothing is modified
    """
    match = tournament.get_match(match_id)
    if match is None:
        raise MatchNotFoundException(f"Match {match_id} not found in tournament {tournament.id}")

    validate_result(tournament, match, team1_score, team2_score)

    if match.is_completed:
        logger.info(
            "Correcting match %s of tournament %s (was %s-%s)",
            match.id, tournament.id, match.set1_team1, match.set1_team2,
        )
        book.apply_match(match, reverse=True)

    if team1_score > team2_score:
        winner = 1
    elif team2_score > team1_score:
        winner = 2
    else:
        winner = None

    match.set1_team1 = team1_score
    match.set1_team2 = team2_score
    match.team1_score = 1 if winner == 1 else 0
    match.team2_score = 1 if winner == 2 else 0
    match.winner_team = winner
    match.status = MatchStatus.COMPLETED

    book.apply_match(match)

    if tournament.status == TournamentStatus.CREATED:
        tournament.status = TournamentStatus.IN_PROGRESS

    return check_and_advance_phase(tournament, book, point_tables)


def recalculate_player_stats(
    player_id: str, tournaments: Iterable[Tournament], book: PlayerStatsBook
) -> PlayerStats:
    """
    Rebuild a player's match statistics from the completed matches they played.

    Tournament level fields (tournaments played/won, tournament points) are
    left untouched; see points.recalculate_player_points for those.
    """
    stats = book.get_or_create(player_id)
    stats.total_matches = stats.matches_won = stats.matches_lost = stats.matches_drawn = 0
    stats.sets_won = stats.sets_lost = stats.games_won = stats.games_lost = 0

    scratch = PlayerStatsBook()
    for tournament in tournaments:
        for match in tournament.completed_matches():
            if player_id in match.players:
                scratch.apply_match(match)

    rebuilt = scratch.get(player_id)
    if rebuilt is not None:
        stats.total_matches = rebuilt.total_matches
        stats.matches_won = rebuilt.matches_won
        stats.matches_lost = rebuilt.matches_lost
        stats.matches_drawn = rebuilt.matches_drawn
        stats.sets_won = rebuilt.sets_won
        stats.sets_lost = rebuilt.sets_lost
        stats.games_won = rebuilt.games_won
        stats.games_lost = rebuilt.games_lost
    stats.refresh_win_percentage()

    logger.info("Recalculated match stats for player %s", player_id)
    return stats
