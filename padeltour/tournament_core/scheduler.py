"""
Schedule generation for new tournaments.

This module provides functionality for:
- Round robin fixtures for a single group (3, 4 or 6 teams)
- Round robin fixtures for several groups of 4 (8 or 12 teams)
- First round knockout pairings (4, 6, 8 or 12 teams)
- Building teams from a player list and seeding them by ranking points

Team order matters: it decides group membership and knockout pairings.
"""

from typing import Dict, List, Mapping, Sequence, Tuple
import logging

from padeltour.tournament_core.exceptions import UnsupportedTeamCountException
from padeltour.tournament_core.structure import (
    BracketSlot,
    Match,
    MatchStatus,
    Team,
    TournamentType,
)

logger = logging.getLogger(__name__)


# team count -> (team_a_index, team_b_index, match_day)
# The 4 and 6 team tables are one-factorizations: no team plays twice on a day.
ROUND_ROBIN_FIXTURES: Dict[int, Tuple[Tuple[int, int, int], ...]] = {
    3: (
        (0, 1, 1),
        (0, 2, 2),
        (1, 2, 3),
    ),
    4: (
        (0, 1, 1), (2, 3, 1),
        (0, 2, 2), (1, 3, 2),
        (0, 3, 3), (1, 2, 3),
    ),
    6: (
        (0, 1, 1), (2, 3, 1), (4, 5, 1),
        (0, 2, 2), (3, 4, 2), (5, 1, 2),
        (0, 3, 3), (4, 1, 3), (2, 5, 3),
        (0, 4, 4), (1, 2, 4), (3, 5, 4),
        (0, 5, 5), (2, 4, 5), (1, 3, 5),
    ),
}

# team count -> number of groups of GROUP_SIZE teams
MULTI_GROUP_SIZES = {8: 2, 12: 3}
GROUP_SIZE = 4

KNOCKOUT_TEAM_COUNTS = (4, 6, 8, 12)
GROUP_STAGE_TEAM_COUNTS = (4, 6, 8, 12)

FIRST_ROUND_SLOTS = {
    4: BracketSlot.SEMIFINAL,
    8: BracketSlot.QUARTERFINAL,
}


def generate_round_robin_matches(tournament_id, teams: Sequence[Team]) -> List[Match]:
    """Generate round robin fixtures for a single group or for groups of four."""
    team_count = len(teams)

    if team_count in ROUND_ROBIN_FIXTURES:
        return generate_group_fixtures(tournament_id, teams, group_number=1)

    if team_count in MULTI_GROUP_SIZES:
        return _generate_multi_group(tournament_id, teams, MULTI_GROUP_SIZES[team_count])

    raise UnsupportedTeamCountException(team_count)


def generate_group_fixtures(
    tournament_id, teams: Sequence[Team], group_number: int = 1
) -> List[Match]:
    """Play every team in a group against every other team once."""
    fixtures = ROUND_ROBIN_FIXTURES.get(len(teams))
    if fixtures is None:
        raise UnsupportedTeamCountException(len(teams))

    matches = []
    for match_number, (team_a, team_b, match_day) in enumerate(fixtures, start=1):
        matches.append(
            Match.between(
                tournament_id,
                teams[team_a],
                teams[team_b],
                phase=1,
                round_number=1,
                match_number=match_number,
                match_day=match_day,
                group_number=group_number,
                slot=BracketSlot.GROUP,
                status=MatchStatus.SCHEDULED,
            )
        )
    return matches


def _generate_multi_group(tournament_id, teams: Sequence[Team], group_count: int) -> List[Match]:
    matches = []
    for group_index in range(group_count):
        start = group_index * GROUP_SIZE
        group_teams = teams[start:start + GROUP_SIZE]
        matches.extend(generate_group_fixtures(tournament_id, group_teams, group_index + 1))

    # Numbering is contiguous across the whole tournament
    for match_number, match in enumerate(matches, start=1):
        match.match_number = match_number

    return matches


def split_into_groups(teams: Sequence[Team]) -> Dict[int, List[Team]]:
    """Group number -> teams, following the same contiguous partition as the fixtures."""
    if len(teams) in MULTI_GROUP_SIZES:
        return {
            index + 1: list(teams[index * GROUP_SIZE:(index + 1) * GROUP_SIZE])
            for index in range(MULTI_GROUP_SIZES[len(teams)])
        }
    return {1: list(teams)}


def generate_knockout_matches(tournament_id, teams: Sequence[Team]) -> List[Match]:
    """Generate the first knockout round by pairing consecutive teams (0v1, 2v3, ...)."""
    team_count = len(teams)
    if team_count not in KNOCKOUT_TEAM_COUNTS:
        raise UnsupportedTeamCountException(team_count, "knockout")
    if team_count % 2:
        raise UnsupportedTeamCountException(team_count, "knockout")

    slot = FIRST_ROUND_SLOTS.get(team_count, BracketSlot.FIRST_ROUND)
    if slot == BracketSlot.FIRST_ROUND:
        logger.warning(
            "Knockout with %d teams only has a first round defined", team_count
        )

    matches = []
    for index in range(0, team_count, 2):
        matches.append(
            Match.between(
                tournament_id,
                teams[index],
                teams[index + 1],
                phase=1,
                round_number=1,
                match_number=index // 2 + 1,
                slot=slot,
                status=MatchStatus.SCHEDULED,
            )
        )
    return matches


def generate_group_stage_matches(tournament_id, teams: Sequence[Team]) -> List[Match]:
    """Phase 1 of a group stage knockout: round robin, single or multi group."""
    if len(teams) not in GROUP_STAGE_TEAM_COUNTS:
        raise UnsupportedTeamCountException(len(teams), "group stage")
    return generate_round_robin_matches(tournament_id, teams)


def generate_matches(tournament_type: TournamentType, tournament_id, teams: Sequence[Team]) -> List[Match]:
    """Generate the initial schedule for a tournament of the given type."""
    if tournament_type == TournamentType.ROUND_ROBIN:
        matches = generate_round_robin_matches(tournament_id, teams)
    elif tournament_type == TournamentType.KNOCKOUT:
        matches = generate_knockout_matches(tournament_id, teams)
    elif tournament_type == TournamentType.GROUP_STAGE_KNOCKOUT:
        matches = generate_group_stage_matches(tournament_id, teams)
    else:
        raise ValueError(f"Unknown tournament type: {tournament_type}")

    logger.info(
        "Generated %d %s matches for tournament %s",
        len(matches), tournament_type.value, tournament_id,
    )
    return matches


def create_teams(player_ids: Sequence[str]) -> List[Team]:
    """Pair consecutive players into teams."""
    if len(player_ids) % 2:
        raise ValueError(f"Cannot build teams from {len(player_ids)} players (must be even)")
    return [Team(player_ids[i], player_ids[i + 1]) for i in range(0, len(player_ids), 2)]


def seed_teams_by_points(teams: Sequence[Team], player_points: Mapping[str, float]) -> List[Team]:
    """Order teams by combined ranking points, strongest first.

    Teams with equal points keep their relative order.
    """
    def team_points(team: Team) -> float:
        return player_points.get(team.player1, 0) + player_points.get(team.player2, 0)

    seeded = sorted(teams, key=team_points, reverse=True)
    for seed, team in enumerate(seeded, start=1):
        logger.debug("Seed %d: %s (%s pts)", seed, team, team_points(team))
    return seeded
