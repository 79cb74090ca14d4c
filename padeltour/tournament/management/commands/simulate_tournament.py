"""
Management command to simulate a full tournament with random results.

Creates players with fake names, schedules a tournament of the requested
format and plays every match (including generated knockout rounds) with
random single-set scores until the tournament finishes.
"""

import random
from django.core.management.base import BaseCommand, CommandError
from faker import Faker

from padeltour.tournament.service import PLAYER_COUNTS, TournamentService
from padeltour.tournament_core.exceptions import PadelTourException
from padeltour.tournament_core.scheduler import create_teams
from padeltour.tournament_core.structure import (
    MatchStatus,
    TournamentCategory,
    TournamentStatus,
    TournamentType,
)

# A timed set ends with the leading team on SET_GAMES or fewer
SET_GAMES = 6


class Command(BaseCommand):
    help = "Simulate a padel tournament with random results"

    def add_arguments(self, parser):
        parser.add_argument(
            "--type",
            choices=[t.value for t in TournamentType],
            default=TournamentType.ROUND_ROBIN.value,
            help="Tournament format (default: ROUND_ROBIN)",
        )
        parser.add_argument(
            "--players",
            type=int,
            default=8,
            help="Number of players: 8, 12, 16 or 24 (default: 8)",
        )
        parser.add_argument(
            "--category",
            choices=[c.value for c in TournamentCategory],
            default=TournamentCategory.OPEN_250.value,
            help="Category deciding the point table (default: OPEN_250)",
        )
        parser.add_argument(
            "--allow-ties",
            action="store_true",
            help="Allow group matches to end level",
        )
        parser.add_argument(
            "--seed",
            type=int,
            help="Random seed for reproducible simulations",
        )
        parser.add_argument(
            "--locale",
            type=str,
            default="es_ES",
            help="Faker locale for player names (default: es_ES)",
        )

    def handle(self, *args, **options):
        if options["players"] not in PLAYER_COUNTS:
            raise CommandError(
                f"Number of players ({options['players']}) must be one of {PLAYER_COUNTS}"
            )

        fake = Faker(options["locale"])
        rng = random.Random(options["seed"])
        if options["seed"] is not None:
            fake.seed_instance(options["seed"])

        tournament_type = TournamentType(options["type"])
        allow_ties = options["allow_ties"]

        players = []
        while len(players) < options["players"]:
            name = fake.name()
            if name not in players:
                players.append(name)

        service = TournamentService()
        try:
            tournament = service.create_tournament(
                f"{fake.city()} {tournament_type.value.replace('_', ' ').title()}",
                tournament_type,
                create_teams(players),
                category=TournamentCategory(options["category"]),
                allow_ties=allow_ties,
            )
        except PadelTourException as e:
            raise CommandError(str(e))

        self.stdout.write(
            self.style.WARNING(f"Simulating {tournament.name} ({len(tournament.teams)} teams)...")
        )

        played = 0
        while tournament.status != TournamentStatus.FINISHED:
            pending = [m for m in tournament.matches if m.status == MatchStatus.SCHEDULED]
            if not pending:
                self.stdout.write(
                    self.style.ERROR("No continuation is defined for this bracket, stopping")
                )
                break
            match = pending[0]
            team1_score, team2_score = self._random_score(rng, allow_ties and match.phase == 1)
            service.submit_result(match.id, team1_score, team2_score)
            played += 1
            self.stdout.write(f"  {match}: {team1_score}-{team2_score}")

        self.stdout.write(self.style.SUCCESS(f"✓ Played {played} matches"))

        if tournament.status == TournamentStatus.FINISHED:
            self.stdout.write("Final positions:")
            for result in service.get_standings(tournament.id).results:
                self.stdout.write(
                    f"  {result.final_position:>2}. {result.player_id}: "
                    f"{result.points_awarded} + {result.bonus_points} bonus"
                )

    def _random_score(self, rng, allow_ties):
        """A timed set: one side reaches up to SET_GAMES, the other trails."""
        leader = rng.randint(3, SET_GAMES)
        trailer = rng.randint(0, leader if allow_ties else leader - 1)
        if rng.random() < 0.5:
            return leader, trailer
        return trailer, leader
