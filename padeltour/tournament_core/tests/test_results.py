"""
Tests for the match result processor and player statistics.

This test suite covers:
- Score validation (negative scores, tie rules) without partial mutation
- Forward and reverse stat updates on all four players
- Result corrections (reverse then reapply)
- Win percentage over decisive matches
- Full recalculation of a player's match statistics
"""

import copy
import unittest

from padeltour.tournament_core.builder import TournamentBuilder
from padeltour.tournament_core.exceptions import (
    ErrorKind,
    InvalidScoreException,
    MatchNotFoundException,
    ReverseNonexistentStatsException,
    TieNotAllowedException,
    TieRejection,
)
from padeltour.tournament_core.results import (
    Outcome,
    PlayerStatsBook,
    recalculate_player_stats,
    submit_result,
)
from padeltour.tournament_core.structure import MatchStatus, TournamentStatus


def four_team_round_robin(**options):
    builder = TournamentBuilder("RR").round_robin().teams("A", "B", "C", "D")
    if options.get("allow_ties"):
        builder.allow_ties()
    return builder


class TestScoreValidation(unittest.TestCase):
    """Rejected submissions leave every record untouched."""

    def test_tie_rejected_when_tournament_disallows_ties(self):
        builder = four_team_round_robin()
        match = builder.find_match("A", "B")

        with self.assertRaises(TieNotAllowedException) as ctx:
            submit_result(builder.tournament, match.id, 5, 5, builder.book)

        self.assertEqual(ctx.exception.reason, TieRejection.TOURNAMENT)
        self.assertEqual(ctx.exception.kind, ErrorKind.TIE_NOT_ALLOWED)
        self.assertEqual(str(ctx.exception), "Match cannot end in a tie")
        self.assertEqual(match.status, MatchStatus.SCHEDULED)
        self.assertIsNone(match.set1_team1)
        self.assertEqual(builder.book.stats, {})
        self.assertEqual(builder.tournament.status, TournamentStatus.CREATED)

    def test_tie_rejected_in_knockout(self):
        builder = TournamentBuilder("KO").knockout().allow_ties().teams("A", "B", "C", "D")
        match = builder.find_match("A", "B")

        with self.assertRaises(TieNotAllowedException) as ctx:
            submit_result(builder.tournament, match.id, 4, 4, builder.book)

        self.assertEqual(ctx.exception.reason, TieRejection.FORMAT)
        self.assertEqual(str(ctx.exception), "Ties are not allowed in knockout tournaments")

    def test_tie_rejected_in_playoffs(self):
        builder = TournamentBuilder("GSK").group_stage_knockout().allow_ties()
        builder.teams("A", "B", "C", "D")
        builder.play_round(1, 1, [(6, 1)] * 6)
        final = builder.tournament.round_matches(2, 1)[0]

        with self.assertRaises(TieNotAllowedException) as ctx:
            submit_result(builder.tournament, final.id, 3, 3, builder.book)

        self.assertEqual(ctx.exception.reason, TieRejection.PHASE)
        self.assertEqual(str(ctx.exception), "Ties are not allowed in playoff matches")
        self.assertEqual(final.status, MatchStatus.SCHEDULED)

    def test_tie_accepted_in_group_when_allowed(self):
        builder = four_team_round_robin(allow_ties=True)
        builder.play("A", "B", 4, 4)

        match = builder.find_match("A", "B")
        self.assertTrue(match.is_tie)
        self.assertEqual((match.team1_score, match.team2_score), (0, 0))
        self.assertEqual(builder.book.get("A-1").matches_drawn, 1)

    def test_negative_score(self):
        builder = four_team_round_robin()
        match = builder.find_match("A", "B")

        with self.assertRaises(InvalidScoreException) as ctx:
            submit_result(builder.tournament, match.id, -1, 6, builder.book)

        self.assertEqual(ctx.exception.kind, ErrorKind.INVALID_SCORE)
        self.assertEqual(match.status, MatchStatus.SCHEDULED)
        self.assertEqual(builder.book.stats, {})

    def test_invalid_correction_keeps_previous_result(self):
        builder = four_team_round_robin()
        builder.play("A", "B", 6, 3)
        before = copy.deepcopy(builder.book.stats)
        match = builder.find_match("A", "B")

        with self.assertRaises(TieNotAllowedException):
            submit_result(builder.tournament, match.id, 2, 2, builder.book)

        self.assertEqual((match.set1_team1, match.set1_team2), (6, 3))
        self.assertEqual(builder.book.stats, before)

    def test_unknown_match(self):
        builder = four_team_round_robin()
        with self.assertRaises(MatchNotFoundException):
            submit_result(builder.tournament, 999, 6, 0, builder.book)


class TestStatUpdates(unittest.TestCase):
    """Forward and reverse updates of PlayerStats."""

    def test_result_recorded_on_match_and_players(self):
        builder = four_team_round_robin()
        builder.play("A", "B", 6, 3)

        match = builder.find_match("A", "B")
        self.assertEqual(match.status, MatchStatus.COMPLETED)
        self.assertEqual(match.winner_team, 1)
        self.assertEqual((match.team1_score, match.team2_score), (1, 0))
        self.assertEqual(builder.tournament.status, TournamentStatus.IN_PROGRESS)

        for player in ("A-1", "A-2"):
            stats = builder.book.get(player)
            self.assertEqual((stats.total_matches, stats.matches_won, stats.sets_won), (1, 1, 1))
            self.assertEqual((stats.games_won, stats.games_lost), (6, 3))
            self.assertEqual(stats.win_percentage, 100.0)
        for player in ("B-1", "B-2"):
            stats = builder.book.get(player)
            self.assertEqual((stats.matches_lost, stats.sets_lost), (1, 1))
            self.assertEqual((stats.games_won, stats.games_lost), (3, 6))
            self.assertEqual(stats.win_percentage, 0.0)

    def test_reverse_restores_previous_stats_exactly(self):
        builder = four_team_round_robin()
        builder.play("C", "D", 6, 1)
        builder.play("A", "C", 2, 6)
        before = copy.deepcopy(builder.book.stats)

        match = builder.find_match("A", "B")
        builder.play("A", "B", 6, 4)
        builder.book.apply_match(match, reverse=True)

        self.assertEqual(builder.book.stats["A-1"], before["A-1"])
        self.assertEqual(builder.book.stats["C-1"], before["C-1"])
        # B's record was created by this result and is now back to zero
        self.assertEqual(builder.book.stats["B-1"].total_matches, 0)
        self.assertEqual(builder.book.stats["B-1"].games_won, 0)

    def test_editing_to_same_score_is_idempotent(self):
        builder = four_team_round_robin()
        builder.play("A", "B", 6, 3)
        after_first = copy.deepcopy(builder.book.stats)

        builder.play("A", "B", 6, 3)

        self.assertEqual(builder.book.stats, after_first)

    def test_correction_swaps_winner(self):
        builder = four_team_round_robin()
        builder.play("A", "B", 6, 3)
        builder.play("A", "B", 2, 6)

        winner = builder.book.get("B-1")
        loser = builder.book.get("A-1")
        self.assertEqual((winner.total_matches, winner.matches_won, winner.matches_lost), (1, 1, 0))
        self.assertEqual((loser.total_matches, loser.matches_won, loser.matches_lost), (1, 0, 1))
        self.assertEqual((loser.games_won, loser.games_lost), (2, 6))
        self.assertEqual(builder.find_match("A", "B").winner_team, 2)

    def test_reversing_without_record_fails(self):
        book = PlayerStatsBook()
        with self.assertRaises(ReverseNonexistentStatsException) as ctx:
            book.record_outcome("ghost", Outcome.WIN, 6, 2, reverse=True)
        self.assertEqual(ctx.exception.player_id, "ghost")
        self.assertNotIn("ghost", book.stats)

    def test_win_percentage_over_decisive_matches(self):
        book = PlayerStatsBook()
        book.record_outcome("p", Outcome.WIN, 6, 2)
        book.record_outcome("p", Outcome.WIN, 6, 4)
        book.record_outcome("p", Outcome.LOSS, 3, 6)
        self.assertAlmostEqual(book.get("p").win_percentage, 2 / 3 * 100)

        # A draw leaves wins and losses alone and is not a decisive match
        stats = book.record_outcome("p", Outcome.DRAW, 5, 5)
        self.assertEqual((stats.matches_won, stats.matches_lost, stats.matches_drawn), (2, 1, 1))
        self.assertAlmostEqual(stats.win_percentage, 2 / 3 * 100)

    def test_only_draws_means_zero_percent(self):
        book = PlayerStatsBook()
        stats = book.record_outcome("p", Outcome.DRAW, 4, 4)
        self.assertEqual(stats.win_percentage, 0.0)


class TestRecalculation(unittest.TestCase):
    def test_recalculation_matches_incremental_stats(self):
        builder = four_team_round_robin(allow_ties=True)
        builder.play("A", "B", 6, 3)
        builder.play("A", "C", 4, 4)
        builder.play("A", "D", 1, 6)
        builder.play("A", "B", 3, 6)  # correction
        expected = copy.deepcopy(builder.book.get("A-1"))

        stats = builder.book.get("A-1")
        stats.matches_won = 99
        stats.games_lost = -5
        recalculated = recalculate_player_stats("A-1", [builder.tournament], builder.book)

        self.assertEqual(recalculated, expected)

    def test_recalculation_keeps_tournament_fields(self):
        builder = four_team_round_robin()
        builder.play("A", "B", 6, 3)
        stats = builder.book.get("A-1")
        stats.tournament_points = 12.5
        stats.tournaments_played = 2

        recalculate_player_stats("A-1", [builder.tournament], builder.book)

        self.assertEqual(stats.tournament_points, 12.5)
        self.assertEqual(stats.tournaments_played, 2)
        self.assertEqual(stats.total_matches, 1)


if __name__ == "__main__":
    unittest.main()
