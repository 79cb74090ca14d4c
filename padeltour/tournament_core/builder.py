"""
Builder for creating tournaments with a fluent API.

Teams are registered by name so that tests and simulations can refer to
"Alpha" rather than to a pair of player ids:

    builder = (
        TournamentBuilder("spring-open")
        .round_robin()
        .team("Alpha", "ana", "bea")
        .team("Bravo", "cris", "dani")
        .team("Charlie", "eva", "fran")
        .team("Delta", "gala", "hugo")
    )
    builder.play("Alpha", "Bravo", 6, 3)
    tournament = builder.tournament

Matches are generated on the first call to build() or play(), and every
result goes through the regular result processor.
"""

from typing import Dict, List, Mapping, Optional
from dataclasses import dataclass, field

from padeltour.tournament_core.results import PlayerStatsBook, submit_result
from padeltour.tournament_core.scheduler import generate_matches
from padeltour.tournament_core.structure import (
    Match,
    Team,
    Tournament,
    TournamentCategory,
    TournamentType,
)


@dataclass
class TournamentMetadata:
    """Naming information kept beside the tournament (not part of it)."""

    name: str = ""
    teams: Dict[str, Team] = field(default_factory=dict)  # name -> team

    def team_name(self, team: Team) -> str:
        for name, candidate in self.teams.items():
            if candidate == team:
                return name
        return str(team)


class TournamentBuilder:
    """Builder for creating and playing tournaments easily."""

    def __init__(self, tournament_id="T1", name: str = "", book: Optional[PlayerStatsBook] = None):
        self.tournament_id = tournament_id
        self.metadata = TournamentMetadata(name=name or str(tournament_id))
        self.book = book if book is not None else PlayerStatsBook()
        self.point_tables: Optional[Mapping] = None
        self._type = TournamentType.ROUND_ROBIN
        self._category = TournamentCategory.OPEN_250
        self._allow_ties = False
        self._tournament: Optional[Tournament] = None

    # Format

    def round_robin(self) -> "TournamentBuilder":
        self._type = TournamentType.ROUND_ROBIN
        return self

    def knockout(self) -> "TournamentBuilder":
        self._type = TournamentType.KNOCKOUT
        return self

    def group_stage_knockout(self) -> "TournamentBuilder":
        self._type = TournamentType.GROUP_STAGE_KNOCKOUT
        return self

    def category(self, category: TournamentCategory) -> "TournamentBuilder":
        self._category = category
        return self

    def allow_ties(self, allow: bool = True) -> "TournamentBuilder":
        self._allow_ties = allow
        return self

    def with_point_tables(self, point_tables: Mapping) -> "TournamentBuilder":
        self.point_tables = point_tables
        return self

    # Teams

    def team(self, name: str, player1: Optional[str] = None, player2: Optional[str] = None) -> "TournamentBuilder":
        """Add a team. Player ids default to '<name>-1' and '<name>-2'."""
        if self._tournament is not None:
            raise ValueError("Teams cannot be added once matches are generated")
        if name in self.metadata.teams:
            raise ValueError(f"Team already exists: {name}")
        self.metadata.teams[name] = Team(player1 or f"{name}-1", player2 or f"{name}-2")
        return self

    def teams(self, *names: str) -> "TournamentBuilder":
        for name in names:
            self.team(name)
        return self

    def get_team(self, name: str) -> Team:
        if name not in self.metadata.teams:
            raise ValueError(f"Team not found: {name}")
        return self.metadata.teams[name]

    # Building and playing

    def build(self) -> Tournament:
        """Create the tournament and its initial schedule (once)."""
        if self._tournament is None:
            teams = list(self.metadata.teams.values())
            tournament = Tournament(
                id=self.tournament_id,
                type=self._type,
                teams=teams,
                name=self.metadata.name,
                category=self._category,
                allow_ties=self._allow_ties,
            )
            tournament.add_matches(generate_matches(self._type, tournament.id, teams))
            self._tournament = tournament
        return self._tournament

    @property
    def tournament(self) -> Tournament:
        return self.build()

    def find_match(self, team_a: str, team_b: str) -> Match:
        """Latest match between two named teams, preferring unplayed ones."""
        wanted = {self.get_team(team_a), self.get_team(team_b)}
        candidates = [m for m in self.tournament.matches if set(m.teams) == wanted]
        if not candidates:
            raise ValueError(f"No match between {team_a} and {team_b}")
        unplayed = [m for m in candidates if not m.is_completed]
        return (unplayed or candidates)[-1]

    def play(self, team_a: str, team_b: str, score_a: int, score_b: int) -> "TournamentBuilder":
        """Submit a result, scores given from team_a's point of view."""
        match = self.find_match(team_a, team_b)
        if match.team1 == self.get_team(team_a):
            team1_score, team2_score = score_a, score_b
        else:
            team1_score, team2_score = score_b, score_a
        submit_result(
            self.tournament, match.id, team1_score, team2_score, self.book, self.point_tables
        )
        return self

    def play_round(self, phase: int, round_number: int, scores: List[tuple]) -> "TournamentBuilder":
        """Submit (team1_score, team2_score) for each match of a round, in match order."""
        matches = self.tournament.round_matches(phase, round_number)
        if len(scores) != len(matches):
            raise ValueError(
                f"Round {round_number} of phase {phase} has {len(matches)} matches, "
                f"got {len(scores)} scores"
            )
        for match, (team1_score, team2_score) in zip(matches, scores):
            submit_result(
                self.tournament, match.id, team1_score, team2_score, self.book, self.point_tables
            )
        return self

    def name_of(self, team: Team) -> str:
        return self.metadata.team_name(team)
