"""
Fluent assertion interface for testing tournament standings and outcomes.

    assert_tournament(builder).team("Alpha").assert_().wins(3).points(6).position(1)
    assert_tournament(builder).order("Alpha", "Charlie", "Bravo", "Delta")
    assert_tournament(builder).player("Alpha-1").final_position(1).total_points(10.5)

It works on the in-memory records produced by TournamentBuilder.
"""

from typing import Dict, List, Optional
from dataclasses import dataclass

from padeltour.tournament_core.builder import TournamentBuilder
from padeltour.tournament_core.results import PlayerStatsBook
from padeltour.tournament_core.structure import Team, TeamStanding, Tournament
from padeltour.tournament_core.tiebreaks import assign_positions, find_standing, phase_standings


# Use the built-in AssertionError for proper test framework integration


@dataclass
class StandingsAssertion:
    """Fluent interface for asserting tournament standings."""

    tournament: Tournament
    teams: Dict[str, Team]
    book: Optional[PlayerStatsBook] = None
    phase: int = 1

    def _ranked(self) -> List[TeamStanding]:
        return phase_standings(self.tournament, self.phase)

    def _name(self, team: Team) -> str:
        for name, candidate in self.teams.items():
            if candidate == team:
                return name
        return str(team)

    def team(self, name: str) -> "TeamAssertion":
        """Select a team by name for assertions."""
        if name not in self.teams:
            raise AssertionError(f"Team '{name}' not found in tournament")
        return TeamAssertion(
            tournament=self.tournament,
            teams=self.teams,
            book=self.book,
            phase=self.phase,
            team_name=name,
        )

    def player(self, player_id: str) -> "PlayerAssertion":
        """Select a player for stats and result assertions."""
        if self.book is None:
            raise AssertionError("No stats book available for player assertions")
        return PlayerAssertion(self.tournament, self.book, player_id)

    def order(self, *names: str) -> "StandingsAssertion":
        """Assert the ranked order of the first len(names) teams."""
        actual = [self._name(s.team) for s in self._ranked()][:len(names)]
        if actual != list(names):
            raise AssertionError(f"Expected standings {list(names)}, got {actual}")
        return self

    def status(self, expected) -> "StandingsAssertion":
        if self.tournament.status != expected:
            raise AssertionError(
                f"Expected status {expected.value}, got {self.tournament.status.value}"
            )
        return self


@dataclass
class TeamAssertion(StandingsAssertion):
    """Assertions for a specific team."""

    team_name: str = ""

    def assert_(self) -> "TeamAssertion":
        """Start a chain of assertions for this team."""
        return self

    def _standing(self) -> TeamStanding:
        standing = find_standing(self._ranked(), self.teams[self.team_name])
        if standing is not None:
            return standing
        raise AssertionError(f"{self.team_name} has no completed matches in phase {self.phase}")

    def _check(self, label: str, expected, actual) -> "TeamAssertion":
        if actual != expected:
            raise AssertionError(f"{self.team_name} expected {expected} {label}, got {actual}")
        return self

    def played(self, expected: int) -> "TeamAssertion":
        return self._check("matches played", expected, self._standing().matches_played)

    def wins(self, expected: int) -> "TeamAssertion":
        return self._check("wins", expected, self._standing().matches_won)

    def losses(self, expected: int) -> "TeamAssertion":
        return self._check("losses", expected, self._standing().matches_lost)

    def draws(self, expected: int) -> "TeamAssertion":
        return self._check("draws", expected, self._standing().matches_drawn)

    def points(self, expected: int) -> "TeamAssertion":
        return self._check("points", expected, self._standing().points)

    def set_difference(self, expected: int) -> "TeamAssertion":
        return self._check("set difference", expected, self._standing().set_difference)

    def game_difference(self, expected: int) -> "TeamAssertion":
        return self._check("game difference", expected, self._standing().game_difference)

    def position(self, expected: int) -> "TeamAssertion":
        """Assert the standings position (tied teams share a position)."""
        target = self.teams[self.team_name]
        for actual, standing in assign_positions(self._ranked()):
            if standing.team == target:
                return self._check("position", expected, actual)
        raise AssertionError(f"Could not determine position for {self.team_name}")


@dataclass
class PlayerAssertion:
    """Assertions on one player's cumulative stats and tournament result."""

    tournament: Tournament
    book: PlayerStatsBook
    player_id: str

    def _stats(self):
        stats = self.book.get(self.player_id)
        if stats is None:
            raise AssertionError(f"No stats recorded for {self.player_id}")
        return stats

    def _result(self):
        result = self.book.get_result(self.tournament.id, self.player_id)
        if result is None:
            raise AssertionError(f"No result recorded for {self.player_id} in {self.tournament.id}")
        return result

    def _check(self, label: str, expected, actual) -> "PlayerAssertion":
        if actual != expected:
            raise AssertionError(f"{self.player_id} expected {expected} {label}, got {actual}")
        return self

    def matches(self, total: int, won: int, lost: int, drawn: int = 0) -> "PlayerAssertion":
        stats = self._stats()
        actual = (stats.total_matches, stats.matches_won, stats.matches_lost, stats.matches_drawn)
        return self._check("matches (total, won, lost, drawn)", (total, won, lost, drawn), actual)

    def games(self, won: int, lost: int) -> "PlayerAssertion":
        stats = self._stats()
        return self._check("games (won, lost)", (won, lost), (stats.games_won, stats.games_lost))

    def win_percentage(self, expected: float) -> "PlayerAssertion":
        actual = self._stats().win_percentage
        # Allow small floating point differences
        if abs(actual - expected) > 0.0001:
            raise AssertionError(f"{self.player_id} expected {expected}% wins, got {actual}%")
        return self

    def final_position(self, expected: int) -> "PlayerAssertion":
        return self._check("final position", expected, self._result().final_position)

    def bonus_points(self, expected: int) -> "PlayerAssertion":
        return self._check("bonus points", expected, self._result().bonus_points)

    def total_points(self, expected: float) -> "PlayerAssertion":
        return self._check("total points", expected, self._result().total_points)


def assert_tournament(source, phase: int = 1) -> StandingsAssertion:
    """Create a fluent assertion interface for a built tournament.

    Accepts a TournamentBuilder (team names and stats available) or a bare
    Tournament (teams addressed as 'player1/player2').
    """
    if isinstance(source, TournamentBuilder):
        return StandingsAssertion(
            tournament=source.tournament,
            teams=dict(source.metadata.teams),
            book=source.book,
            phase=phase,
        )
    return StandingsAssertion(
        tournament=source,
        teams={str(team): team for team in source.teams},
        phase=phase,
    )
