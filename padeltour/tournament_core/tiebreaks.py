"""
Standings and tiebreak calculation for tournaments.

Standings are never stored: they are rebuilt from the completed matches of a
phase or group whenever they are needed. Teams are ordered by the mandatory
tiebreak chain:

1. standings points (2 per win, 1 per draw)
2. set difference
3. game difference

Teams equal on all three criteria are genuinely tied.
"""

from typing import Dict, Iterable, List, Optional, Tuple
from functools import cmp_to_key

from padeltour.tournament_core.scoring import ScoringSystem, STANDARD_SCORING
from padeltour.tournament_core.structure import Match, Team, TeamStanding, Tournament


def build_team_standings(
    matches: Iterable[Match], scoring: ScoringSystem = STANDARD_SCORING
) -> List[TeamStanding]:
    """
    Aggregate completed matches into one standing per team.

    Matches that are not COMPLETED are ignored. Teams appear in the order
    they are first met.

    Args:
        matches: Matches of a phase or group
        scoring: Scoring system used for standings points

    Returns:
        Unsorted list of TeamStanding objects
    """
    standings: Dict[Team, TeamStanding] = {}

    for match in matches:
        if not match.is_completed:
            continue

        team1 = standings.setdefault(
            match.team1, TeamStanding(team=match.team1, group_number=match.group_number)
        )
        team2 = standings.setdefault(
            match.team2, TeamStanding(team=match.team2, group_number=match.group_number)
        )

        team1.matches_played += 1
        team2.matches_played += 1

        team1.sets_won += match.team1_score or 0
        team1.sets_lost += match.team2_score or 0
        team2.sets_won += match.team2_score or 0
        team2.sets_lost += match.team1_score or 0

        team1_games, team2_games = match.games()
        team1.games_won += team1_games
        team1.games_lost += team2_games
        team2.games_won += team2_games
        team2.games_lost += team1_games

        team1_points, team2_points = scoring.match_points(match.winner_team)
        team1.points += team1_points
        team2.points += team2_points

        if match.winner_team == 1:
            _record_win(team1, team2)
        elif match.winner_team == 2:
            _record_win(team2, team1)
        else:
            team1.matches_drawn += 1
            team2.matches_drawn += 1

    return list(standings.values())


def _record_win(winner: TeamStanding, loser: TeamStanding) -> None:
    winner.matches_won += 1
    loser.matches_lost += 1


def standing_sort_key(standing: TeamStanding) -> Tuple[int, int, int]:
    """Key for the tiebreak chain; larger is better."""
    return (standing.points, standing.set_difference, standing.game_difference)


def compare_standings(a: TeamStanding, b: TeamStanding) -> int:
    """Negative if a ranks above b, positive if below, 0 if genuinely tied."""
    key_a = standing_sort_key(a)
    key_b = standing_sort_key(b)
    if key_a > key_b:
        return -1
    if key_a < key_b:
        return 1
    return 0


def rank_standings(standings: Iterable[TeamStanding]) -> List[TeamStanding]:
    """Sort standings best first. Ties keep their input order."""
    return sorted(standings, key=cmp_to_key(compare_standings))


def assign_positions(ranked: List[TeamStanding]) -> List[Tuple[int, TeamStanding]]:
    """
    Attach positions to ranked standings.

    Standings tied on every criterion share a position and the following
    position is skipped (1, 1, 3).
    """
    positions = []
    for index, standing in enumerate(ranked):
        if index > 0 and compare_standings(ranked[index - 1], standing) == 0:
            position = positions[-1][0]
        else:
            position = index + 1
        positions.append((position, standing))
    return positions


def phase_standings(tournament: Tournament, phase: int = 1) -> List[TeamStanding]:
    """Ranked standings over every completed match of a phase."""
    return rank_standings(build_team_standings(tournament.phase_matches(phase)))


def group_standings(tournament: Tournament, phase: int = 1) -> Dict[int, List[TeamStanding]]:
    """Ranked standings per group number of a phase."""
    by_group: Dict[Optional[int], List[Match]] = {}
    for match in tournament.phase_matches(phase):
        by_group.setdefault(match.group_number, []).append(match)

    return {
        group: rank_standings(build_team_standings(matches))
        for group, matches in sorted(by_group.items(), key=lambda item: item[0] or 0)
    }


def find_standing(standings: Iterable[TeamStanding], team: Team) -> Optional[TeamStanding]:
    """The standing of one team, or None if it has no completed match."""
    for standing in standings:
        if standing.team == team:
            return standing
    return None
