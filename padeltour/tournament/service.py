"""
In-memory tournament service.

Wraps the engine with the operations a web layer exposes:

- create a tournament (validating players and seeding group stages)
- submit a match result by match id
- read standings, or final results once a tournament has finished
- read the player leaderboard

Records live in memory; storing them is the caller's concern. Match ids are
unique across every tournament of a service so a result can be submitted
by match id alone.
"""

from typing import Dict, List, Mapping, Optional, Sequence
from dataclasses import dataclass, field
import itertools
import logging

from padeltour.tournament_core.exceptions import (
    MatchNotFoundException,
    TournamentConfigurationException,
    TournamentNotFoundException,
)
from padeltour.tournament_core.progress import Advancement
from padeltour.tournament_core.results import PlayerStatsBook, submit_result
from padeltour.tournament_core.scheduler import generate_matches, seed_teams_by_points
from padeltour.tournament_core.structure import (
    Match,
    PlayerStats,
    Team,
    Tournament,
    TournamentCategory,
    TournamentResult,
    TournamentStatus,
    TournamentType,
)
from padeltour.tournament_core.tiebreaks import assign_positions, group_standings

logger = logging.getLogger(__name__)

PLAYER_COUNTS = (8, 12, 16, 24)


@dataclass
class StandingsView:
    """What the standings endpoint returns for one tournament."""

    tournament_id: object
    status: TournamentStatus
    groups: Dict[int, List[tuple]] = field(default_factory=dict)  # group -> [(position, standing)]
    results: List[TournamentResult] = field(default_factory=list)

    @property
    def finished(self) -> bool:
        return self.status == TournamentStatus.FINISHED


class TournamentService:
    def __init__(self, book: Optional[PlayerStatsBook] = None, point_tables: Optional[Mapping] = None):
        self.book = book if book is not None else PlayerStatsBook()
        self.point_tables = point_tables
        self.tournaments: Dict[int, Tournament] = {}
        self._tournament_ids = itertools.count(1)
        self._match_ids = itertools.count(1)

    def create_tournament(
        self,
        name: str,
        tournament_type: TournamentType,
        teams: Sequence,
        category: TournamentCategory = TournamentCategory.OPEN_250,
        allow_ties: bool = False,
    ) -> Tournament:
        """
        Validate and create a tournament with its initial schedule.

        Args:
            name: Display name
            tournament_type: ROUND_ROBIN, KNOCKOUT or GROUP_STAGE_KNOCKOUT
            teams: Teams in seeding order, as Team objects or player id pairs
            category: Category deciding the point table
            allow_ties: Whether group matches may end level

        Raises:
            TournamentConfigurationException: On invalid players or options
            UnsupportedTeamCountException: If the format has no schedule for the team count
        """
        teams = [team if isinstance(team, Team) else Team(*team) for team in teams]
        players = [player for team in teams for player in team.players]

        if len(players) not in PLAYER_COUNTS:
            raise TournamentConfigurationException(
                f"A tournament needs 8, 12, 16 or 24 players, got {len(players)}"
            )
        if len(set(players)) != len(players):
            raise TournamentConfigurationException("A player cannot appear twice in a tournament")
        if allow_ties and tournament_type == TournamentType.KNOCKOUT:
            raise TournamentConfigurationException("Knockout tournaments cannot allow ties")

        if tournament_type == TournamentType.GROUP_STAGE_KNOCKOUT:
            teams = seed_teams_by_points(teams, self.book.player_points())

        tournament = Tournament(
            id=next(self._tournament_ids),
            type=tournament_type,
            teams=teams,
            name=name,
            category=category,
            allow_ties=allow_ties,
            _match_ids=self._match_ids,
        )
        tournament.add_matches(generate_matches(tournament_type, tournament.id, teams))
        tournament.status = TournamentStatus.IN_PROGRESS
        self.tournaments[tournament.id] = tournament

        logger.info(
            "Created %s tournament %s '%s' with %d teams",
            tournament_type.value, tournament.id, name, len(teams),
        )
        return tournament

    def get_tournament(self, tournament_id) -> Tournament:
        tournament = self.tournaments.get(tournament_id)
        if tournament is None:
            raise TournamentNotFoundException(f"Tournament {tournament_id} not found")
        return tournament

    def find_match(self, match_id) -> tuple:
        for tournament in self.tournaments.values():
            match = tournament.get_match(match_id)
            if match is not None:
                return tournament, match
        raise MatchNotFoundException(f"Match {match_id} not found")

    def submit_result(self, match_id, team1_score: int, team2_score: int) -> Advancement:
        tournament, _ = self.find_match(match_id)
        return submit_result(
            tournament, match_id, team1_score, team2_score, self.book, self.point_tables
        )

    def get_match(self, match_id) -> Match:
        return self.find_match(match_id)[1]

    def get_standings(self, tournament_id) -> StandingsView:
        """Ranked group standings, plus final results once the tournament is FINISHED."""
        tournament = self.get_tournament(tournament_id)
        view = StandingsView(tournament_id=tournament.id, status=tournament.status)
        for group, ranked in group_standings(tournament, 1).items():
            view.groups[group or 1] = assign_positions(ranked)
        if view.finished:
            view.results = self.book.tournament_results(tournament.id)
        return view

    def leaderboard(self, limit: Optional[int] = None) -> List[PlayerStats]:
        players = self.book.leaderboard()
        return players[:limit] if limit else players
