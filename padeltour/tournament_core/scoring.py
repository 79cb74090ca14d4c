"""
Scoring systems for tournaments.

This module defines how match results are converted to standings points and
how final positions are converted to ranking points for each category.
"""

from typing import Dict, Mapping, Optional, Tuple
from dataclasses import dataclass

from django.conf import settings

from padeltour.tournament_core.structure import TournamentCategory


@dataclass(frozen=True)
class ScoringSystem:
    """Defines how matches are scored in standings."""

    match_win_points: int = 2
    match_draw_points: int = 1
    match_loss_points: int = 0

    def match_points(self, winner_team: Optional[int]) -> Tuple[int, int]:
        """Standings points for (team1, team2); a winner_team of None is a draw."""
        if winner_team == 1:
            return (self.match_win_points, self.match_loss_points)
        if winner_team == 2:
            return (self.match_loss_points, self.match_win_points)
        return (self.match_draw_points, self.match_draw_points)


STANDARD_SCORING = ScoringSystem()


# Ranking points by final position, used when no override is configured
DEFAULT_POINT_TABLES: Dict[TournamentCategory, Dict[int, float]] = {
    TournamentCategory.OPEN_250: {1: 7.5, 2: 5, 3: 3, 4: 1},
    TournamentCategory.OPEN_500: {1: 15, 2: 12, 3: 9, 4: 6, 5: 3, 6: 1},
    TournamentCategory.OPEN_1000: {
        1: 16.5, 2: 13, 3: 11, 4: 9, 5: 7, 6: 5, 7: 3, 8: 1,
    },
    TournamentCategory.MASTERS: {
        1: 24.5, 2: 21, 3: 19, 4: 17, 5: 15, 6: 13,
        7: 11, 8: 9, 9: 7, 10: 5, 11: 3, 12: 1,
    },
}

MAX_POSITION = 12


def configured_point_tables() -> Mapping:
    """Point table overrides from the PADELTOUR_POINT_TABLES setting.

    The engine is usable without a Django project, in which case there are
    no overrides.
    """
    if not settings.configured:
        return {}
    return getattr(settings, "PADELTOUR_POINT_TABLES", {}) or {}


def get_point_table(
    category: TournamentCategory, overrides: Optional[Mapping] = None
) -> Dict[int, float]:
    """Return position -> points for a category.

    Overrides may be keyed by TournamentCategory or its string value. Missing
    positions are filled from the defaults.
    """
    if overrides is None:
        overrides = configured_point_tables()

    custom = overrides.get(category) or overrides.get(category.value) or {}
    defaults = DEFAULT_POINT_TABLES[category]

    table = {}
    for position in range(1, MAX_POSITION + 1):
        if position in custom:
            table[position] = custom[position]
        elif str(position) in custom:
            table[position] = custom[str(position)]
        else:
            table[position] = defaults.get(position, 0)
    return table


def get_points_for_position(
    category: TournamentCategory, position: int, overrides: Optional[Mapping] = None
) -> float:
    return get_point_table(category, overrides).get(position, 0)
