"""
Tournament records for representing doubles tournaments in memory.

This module provides plain records for:
- Teams (fixed pairs of players)
- Matches between two teams, scored as a single time-limited set
- Tournaments with their format, phase and match list
- Cumulative player statistics and per-tournament results

The engine reads and mutates these records; storing them is up to the caller.
"""

from typing import Dict, Iterator, List, Optional, Tuple
from dataclasses import dataclass, field
from enum import Enum
import itertools


class TournamentType(Enum):
    ROUND_ROBIN = "ROUND_ROBIN"
    KNOCKOUT = "KNOCKOUT"
    GROUP_STAGE_KNOCKOUT = "GROUP_STAGE_KNOCKOUT"


class TournamentStatus(Enum):
    CREATED = "CREATED"
    IN_PROGRESS = "IN_PROGRESS"
    PHASE_1_COMPLETE = "PHASE_1_COMPLETE"
    FINISHED = "FINISHED"


class MatchStatus(Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TournamentCategory(Enum):
    OPEN_250 = "OPEN_250"
    OPEN_500 = "OPEN_500"
    OPEN_1000 = "OPEN_1000"
    MASTERS = "MASTERS"


class BracketSlot(Enum):
    """Role of a match inside its tournament.

    Placement slots decide final positions directly; the other slots feed
    the next round.
    """

    GROUP = "group"
    FIRST_ROUND = "first-round"
    QUARTERFINAL = "quarterfinal"
    SEMIFINAL = "semifinal"
    SEMIFINAL_5_8 = "semifinal-5-8"
    SEMIFINAL_9_12 = "semifinal-9-12"
    FINAL = "final"
    THIRD_PLACE = "third-place"
    FIFTH_PLACE = "fifth-place"
    SEVENTH_PLACE = "seventh-place"
    NINTH_PLACE = "ninth-place"
    ELEVENTH_PLACE = "eleventh-place"

    @property
    def placement(self) -> Optional[Tuple[int, int]]:
        """(winner_position, loser_position) for placement matches, else None."""
        return _PLACEMENTS.get(self)

    @property
    def is_placement(self) -> bool:
        return self in _PLACEMENTS


_PLACEMENTS = {
    BracketSlot.FINAL: (1, 2),
    BracketSlot.THIRD_PLACE: (3, 4),
    BracketSlot.FIFTH_PLACE: (5, 6),
    BracketSlot.SEVENTH_PLACE: (7, 8),
    BracketSlot.NINTH_PLACE: (9, 10),
    BracketSlot.ELEVENTH_PLACE: (11, 12),
}


@dataclass(frozen=True, eq=False)
class Team:
    """Two players competing together for a whole tournament.

    Identity ignores player order, display keeps it.
    """

    player1: str
    player2: str

    @property
    def key(self) -> frozenset:
        return frozenset((self.player1, self.player2))

    @property
    def players(self) -> Tuple[str, str]:
        return (self.player1, self.player2)

    def __eq__(self, other):
        if not isinstance(other, Team):
            return NotImplemented
        return self.key == other.key

    def __hash__(self):
        return hash(self.key)

    def __str__(self):
        return f"{self.player1}/{self.player2}"


@dataclass
class Match:
    """A single-set match between team A (player1+player2) and team B (player3+player4)."""

    tournament_id: object
    phase: int
    round_number: int
    match_number: int
    player1: str
    player2: str
    player3: str
    player4: str
    slot: BracketSlot = BracketSlot.GROUP
    match_day: Optional[int] = None
    group_number: Optional[int] = None
    set1_team1: Optional[int] = None
    set1_team2: Optional[int] = None
    set2_team1: Optional[int] = None
    set2_team2: Optional[int] = None
    set3_team1: Optional[int] = None
    set3_team2: Optional[int] = None
    team1_score: Optional[int] = None  # 1 if team A won the set
    team2_score: Optional[int] = None
    winner_team: Optional[int] = None  # 1, 2 or None for a tie
    status: MatchStatus = MatchStatus.SCHEDULED
    id: Optional[int] = None

    @classmethod
    def between(cls, tournament_id, team_a: Team, team_b: Team, **kwargs) -> "Match":
        return cls(
            tournament_id=tournament_id,
            player1=team_a.player1,
            player2=team_a.player2,
            player3=team_b.player1,
            player4=team_b.player2,
            **kwargs,
        )

    @property
    def team1(self) -> Team:
        return Team(self.player1, self.player2)

    @property
    def team2(self) -> Team:
        return Team(self.player3, self.player4)

    @property
    def teams(self) -> Tuple[Team, Team]:
        return (self.team1, self.team2)

    @property
    def players(self) -> Tuple[str, str, str, str]:
        return (self.player1, self.player2, self.player3, self.player4)

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    @property
    def is_tie(self) -> bool:
        return self.is_completed and self.winner_team is None

    def games(self) -> Tuple[int, int]:
        """Return (team1_games, team2_games) summed over all sets."""
        team1 = (self.set1_team1 or 0) + (self.set2_team1 or 0) + (self.set3_team1 or 0)
        team2 = (self.set1_team2 or 0) + (self.set2_team2 or 0) + (self.set3_team2 or 0)
        return (team1, team2)

    def __str__(self):
        return f"#{self.match_number} {self.team1} vs {self.team2}"


@dataclass
class TeamStanding:
    """Aggregated results of one team over a set of completed matches."""

    team: Team
    matches_played: int = 0
    matches_won: int = 0
    matches_lost: int = 0
    matches_drawn: int = 0
    sets_won: int = 0
    sets_lost: int = 0
    games_won: int = 0
    games_lost: int = 0
    points: int = 0
    group_number: Optional[int] = None

    @property
    def set_difference(self) -> int:
        return self.sets_won - self.sets_lost

    @property
    def game_difference(self) -> int:
        return self.games_won - self.games_lost


@dataclass
class Tournament:
    """A tournament: its format, its ordered teams and every generated match."""

    id: object
    type: TournamentType
    teams: List[Team] = field(default_factory=list)
    name: str = ""
    category: TournamentCategory = TournamentCategory.OPEN_250
    allow_ties: bool = False
    current_phase: int = 1
    status: TournamentStatus = TournamentStatus.CREATED
    matches: List[Match] = field(default_factory=list)
    _match_ids: Iterator[int] = field(
        default_factory=lambda: itertools.count(1), repr=False, compare=False
    )

    @property
    def max_phases(self) -> int:
        return 2 if self.type == TournamentType.GROUP_STAGE_KNOCKOUT else 1

    def add_matches(self, matches: List[Match]) -> List[Match]:
        """Attach generated matches, assigning ids to those without one."""
        for match in matches:
            if match.id is None:
                match.id = next(self._match_ids)
            self.matches.append(match)
        return matches

    def remove_matches(self, matches: List[Match]) -> None:
        """Delete not-yet-played matches so they can be regenerated."""
        doomed = {id(m) for m in matches}
        for match in matches:
            if match.status != MatchStatus.SCHEDULED:
                raise ValueError(f"Cannot delete match {match} with status {match.status.value}")
        self.matches = [m for m in self.matches if id(m) not in doomed]

    def get_match(self, match_id) -> Optional[Match]:
        for match in self.matches:
            if match.id == match_id:
                return match
        return None

    def phase_matches(self, phase: int) -> List[Match]:
        return [m for m in self.matches if m.phase == phase]

    def round_matches(self, phase: int, round_number: int) -> List[Match]:
        return sorted(
            (m for m in self.matches if m.phase == phase and m.round_number == round_number),
            key=lambda m: m.match_number,
        )

    def rounds(self, phase: int) -> Dict[int, List[Match]]:
        """Matches of a phase grouped by round number, in round order."""
        rounds: Dict[int, List[Match]] = {}
        for number in sorted({m.round_number for m in self.phase_matches(phase)}):
            rounds[number] = self.round_matches(phase, number)
        return rounds

    def completed_matches(self) -> List[Match]:
        return [m for m in self.matches if m.is_completed]


def all_completed(matches: List[Match]) -> bool:
    """True when there is at least one match and every match is COMPLETED."""
    return bool(matches) and all(m.is_completed for m in matches)


@dataclass
class PlayerStats:
    """Cumulative statistics of one player across tournaments."""

    player_id: str
    total_matches: int = 0
    matches_won: int = 0
    matches_lost: int = 0
    matches_drawn: int = 0
    sets_won: int = 0
    sets_lost: int = 0
    games_won: int = 0
    games_lost: int = 0
    tournaments_played: int = 0
    tournaments_won: int = 0
    tournament_points: float = 0.0
    win_percentage: float = 0.0

    def refresh_win_percentage(self) -> None:
        decisive = self.total_matches - self.matches_drawn
        self.win_percentage = (self.matches_won / decisive) * 100 if decisive > 0 else 0.0


@dataclass
class TournamentResult:
    """Final placement and points of one player in one finished tournament."""

    tournament_id: object
    player_id: str
    final_position: int
    points_awarded: float
    bonus_points: int
    category: TournamentCategory = TournamentCategory.OPEN_250

    @property
    def total_points(self) -> float:
        return self.points_awarded + self.bonus_points
