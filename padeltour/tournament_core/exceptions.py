"""
Exceptions raised by the tournament engine.

Every exception carries an ErrorKind so callers (the service layer, a web
view, a management command) can map failures without string matching.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    INVALID_SCORE = "InvalidScore"
    TIE_NOT_ALLOWED = "TieNotAllowed"
    UNSUPPORTED_TEAM_COUNT = "UnsupportedTeamCount"
    REVERSE_NONEXISTENT_STATS = "ReverseNonexistentStats"
    MATCH_NOT_FOUND = "MatchNotFound"
    TOURNAMENT_NOT_FOUND = "TournamentNotFound"
    INVALID_TOURNAMENT = "InvalidTournament"
    BRACKET_GENERATION = "BracketGeneration"


class TieRejection(Enum):
    """Which rule rejected a tied score."""

    TOURNAMENT = "tournament"
    PHASE = "phase"
    FORMAT = "format"


class PadelTourException(Exception):
    """Base exception for all engine errors."""

    kind: ErrorKind


class InvalidScoreException(PadelTourException):
    kind = ErrorKind.INVALID_SCORE


class TieNotAllowedException(PadelTourException):
    kind = ErrorKind.TIE_NOT_ALLOWED

    messages = {
        TieRejection.TOURNAMENT: "Match cannot end in a tie",
        TieRejection.PHASE: "Ties are not allowed in playoff matches",
        TieRejection.FORMAT: "Ties are not allowed in knockout tournaments",
    }

    def __init__(self, reason: TieRejection):
        self.reason = reason
        super().__init__(self.messages[reason])


class UnsupportedTeamCountException(PadelTourException, ValueError):
    kind = ErrorKind.UNSUPPORTED_TEAM_COUNT

    def __init__(self, team_count: int, context: Optional[str] = None):
        self.team_count = team_count
        if context:
            message = f"Unsupported team count for {context}: {team_count}"
        else:
            message = f"Unsupported team count: {team_count}"
        super().__init__(message)


class ReverseNonexistentStatsException(PadelTourException):
    kind = ErrorKind.REVERSE_NONEXISTENT_STATS

    def __init__(self, player_id):
        self.player_id = player_id
        super().__init__(f"Cannot reverse a result for player {player_id}: no stats recorded")


class MatchNotFoundException(PadelTourException):
    kind = ErrorKind.MATCH_NOT_FOUND


class TournamentNotFoundException(PadelTourException):
    kind = ErrorKind.TOURNAMENT_NOT_FOUND


class TournamentConfigurationException(PadelTourException):
    """Raised when a tournament cannot be created as requested."""

    kind = ErrorKind.INVALID_TOURNAMENT


class BracketGenerationException(PadelTourException):
    """Raised when the next round cannot be derived from the previous one."""

    kind = ErrorKind.BRACKET_GENERATION


class UnsupportedBracketException(BracketGenerationException):
    """Raised for bracket shapes that have no defined continuation."""

    pass
