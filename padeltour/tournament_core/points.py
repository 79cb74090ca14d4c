"""
Final positions and ranking points for finished tournaments.

Round robin tournaments are placed by their ranked standings. Bracket
tournaments are placed by the slots of their terminal round: each placement
match decides two positions. Teams that never reached a placement match take
the next free positions, best phase 1 standing first.

Every player earns the base points of their position (from the category point
table) plus one bonus point per match won in the tournament.
"""

from typing import Dict, List, Mapping, Optional
from dataclasses import dataclass
import logging

from padeltour.tournament_core.exceptions import BracketGenerationException
from padeltour.tournament_core.knockout import is_terminal_round, losing_team, winning_team
from padeltour.tournament_core.scoring import get_point_table
from padeltour.tournament_core.structure import (
    Team,
    Tournament,
    TournamentResult,
    TournamentType,
)
from padeltour.tournament_core.tiebreaks import assign_positions, phase_standings

logger = logging.getLogger(__name__)


@dataclass
class PlayerPosition:
    """Where a player finished and how many matches they won on the way."""

    player_id: str
    position: int
    team: Team
    matches_won: int = 0


def count_matches_won(tournament: Tournament) -> Dict[str, int]:
    """Matches won per player over every completed match, the source of bonus points."""
    wins: Dict[str, int] = {}
    for match in tournament.completed_matches():
        if match.winner_team == 1:
            winners = match.team1.players
        elif match.winner_team == 2:
            winners = match.team2.players
        else:
            continue
        for player_id in winners:
            wins[player_id] = wins.get(player_id, 0) + 1
    return wins


def _teams_by_phase_one_standing(tournament: Tournament) -> List[Team]:
    ranked = [standing.team for standing in phase_standings(tournament, 1)]
    return ranked + [team for team in tournament.teams if team not in ranked]


def _round_robin_positions(tournament: Tournament) -> List[tuple]:
    placed = [(position, standing.team)
              for position, standing in assign_positions(phase_standings(tournament, 1))]
    seen = {team for _, team in placed}
    next_position = len(placed) + 1
    for team in tournament.teams:
        if team not in seen:
            placed.append((next_position, team))
            next_position += 1
    return placed


def _bracket_positions(tournament: Tournament) -> List[tuple]:
    phase = tournament.max_phases
    rounds = tournament.rounds(phase)
    terminal = rounds[max(rounds)] if rounds else []
    if not is_terminal_round(terminal):
        raise BracketGenerationException(
            f"Tournament {tournament.id} has no placement round in phase {phase}"
        )

    placed = []
    for match in terminal:
        winner_position, loser_position = match.slot.placement
        placed.append((winner_position, winning_team(match)))
        placed.append((loser_position, losing_team(match)))

    taken = {position for position, _ in placed}
    seen = {team for _, team in placed}
    position = 1
    for team in _teams_by_phase_one_standing(tournament):
        if team in seen:
            continue
        while position in taken:
            position += 1
        placed.append((position, team))
        taken.add(position)

    return sorted(placed, key=lambda item: item[0])


def calculate_final_positions(tournament: Tournament) -> List[PlayerPosition]:
    """
    Compute the final position of every player of a finished tournament.

    Both players of a team share its position.

    Raises:
        BracketGenerationException: If a bracket tournament has no complete
            placement round
    """
    if tournament.type == TournamentType.ROUND_ROBIN:
        placed = _round_robin_positions(tournament)
    else:
        placed = _bracket_positions(tournament)

    wins = count_matches_won(tournament)
    return [
        PlayerPosition(
            player_id=player_id,
            position=position,
            team=team,
            matches_won=wins.get(player_id, 0),
        )
        for position, team in placed
        for player_id in team.players
    ]


def _withdraw(stats, result: TournamentResult) -> None:
    stats.tournament_points -= result.total_points
    stats.tournaments_played -= 1
    if result.final_position == 1:
        stats.tournaments_won -= 1


def award_tournament_points(
    tournament: Tournament,
    positions: List[PlayerPosition],
    book,
    point_tables: Optional[Mapping] = None,
) -> List[TournamentResult]:
    """
    Record a TournamentResult per player and add it to their cumulative stats.

    Results are upserted by (tournament, player). When a player already holds
    a result for this tournament, its points and counters are withdrawn first.

    Args:
        tournament: The finished tournament
        positions: Output of calculate_final_positions
        book: PlayerStatsBook receiving results and stats
        point_tables: Optional category point table overrides
    """
    table = get_point_table(tournament.category, point_tables)

    awarded = []
    for entry in positions:
        stats = book.get_or_create(entry.player_id)
        previous = book.get_result(tournament.id, entry.player_id)
        if previous is not None:
            _withdraw(stats, previous)

        result = TournamentResult(
            tournament_id=tournament.id,
            player_id=entry.player_id,
            final_position=entry.position,
            points_awarded=table.get(entry.position, 0),
            bonus_points=entry.matches_won,
            category=tournament.category,
        )
        book.store_result(result)

        stats.tournament_points += result.total_points
        stats.tournaments_played += 1
        if entry.position == 1:
            stats.tournaments_won += 1
        awarded.append(result)

        logger.debug(
            "Player %s finished %d in %s: %s + %s bonus",
            entry.player_id, entry.position, tournament.id,
            result.points_awarded, result.bonus_points,
        )

    return awarded


def recalculate_player_points(player_id: str, book):
    """Rebuild a player's tournament level stats from their recorded results."""
    stats = book.get_or_create(player_id)
    results = book.player_results(player_id)
    stats.tournament_points = sum(r.total_points for r in results)
    stats.tournaments_played = len(results)
    stats.tournaments_won = sum(1 for r in results if r.final_position == 1)
    return stats
