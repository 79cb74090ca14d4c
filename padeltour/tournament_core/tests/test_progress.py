"""
Tests for the phase progress state machine.

This test suite covers:
- Round robin completion
- 4 and 8 team knockout brackets played to the end
- Group stage + knockout with one, two and three groups
- Regeneration of unplayed rounds after corrected results
- Freezing rounds once they have started
- Idempotent advancement
"""

import unittest

from padeltour.tournament_core.builder import TournamentBuilder
from padeltour.tournament_core.progress import Advancement, check_and_advance_phase
from padeltour.tournament_core.results import submit_result
from padeltour.tournament_core.structure import BracketSlot, TournamentStatus

PROGRESS_LOGGER = "padeltour.tournament_core.progress"

TEAM1_WINS = (6, 2)


def names(builder, match):
    return (builder.name_of(match.team1), builder.name_of(match.team2))


class TestRoundRobinProgress(unittest.TestCase):
    def test_finishes_after_last_match(self):
        builder = TournamentBuilder("RR").round_robin().teams("A", "B", "C", "D")
        tournament = builder.tournament
        self.assertEqual(tournament.status, TournamentStatus.CREATED)

        matches = list(tournament.matches)
        for match in matches[:-1]:
            advancement = submit_result(tournament, match.id, *TEAM1_WINS, builder.book)
            self.assertEqual(advancement, Advancement.NONE)
            self.assertEqual(tournament.status, TournamentStatus.IN_PROGRESS)

        advancement = submit_result(tournament, matches[-1].id, *TEAM1_WINS, builder.book)

        self.assertEqual(advancement, Advancement.FINISHED)
        self.assertEqual(tournament.status, TournamentStatus.FINISHED)
        self.assertEqual(len(tournament.matches), 6)

    def test_refinalizing_does_not_duplicate_results(self):
        builder = TournamentBuilder("RR").round_robin().teams("A", "B", "C")
        builder.play_round(1, 1, [TEAM1_WINS] * 3)
        results_before = dict(builder.book.results)

        self.assertEqual(
            check_and_advance_phase(builder.tournament, builder.book), Advancement.REFINALIZED
        )
        self.assertEqual(builder.book.results.keys(), results_before.keys())
        self.assertEqual(builder.book.get("A-1").tournaments_played, 1)


class TestKnockoutProgress(unittest.TestCase):
    """Knockout brackets advance round by round."""

    def setUp(self):
        self.builder = TournamentBuilder("KO").knockout().teams("A", "B", "C", "D")
        self.tournament = self.builder.tournament

    def test_semifinals_produce_final_and_third_place(self):
        self.builder.play("A", "B", 6, 3)
        self.assertEqual(len(self.tournament.matches), 2)

        self.builder.play("C", "D", 4, 6)

        round_two = self.tournament.round_matches(1, 2)
        self.assertEqual(len(self.tournament.matches), 4)
        self.assertEqual([m.match_number for m in round_two], [3, 4])
        final, third = round_two
        self.assertEqual(final.slot, BracketSlot.FINAL)
        self.assertEqual((final.player1, final.player2), ("A-1", "A-2"))
        self.assertEqual((final.player3, final.player4), ("D-1", "D-2"))
        self.assertEqual(names(self.builder, third), ("B", "C"))

    def test_generation_runs_once_per_round(self):
        self.builder.play_round(1, 1, [TEAM1_WINS] * 2)
        self.assertEqual(check_and_advance_phase(self.tournament, self.builder.book), Advancement.NONE)
        self.assertEqual(len(self.tournament.matches), 4)

    def test_finishes_after_placement_round(self):
        self.builder.play_round(1, 1, [TEAM1_WINS] * 2)
        self.builder.play("A", "C", 6, 4)
        self.assertEqual(self.tournament.status, TournamentStatus.IN_PROGRESS)

        self.builder.play("B", "D", 6, 0)

        self.assertEqual(self.tournament.status, TournamentStatus.FINISHED)
        positions = {r.player_id: r.final_position for r in self.builder.book.tournament_results("KO")}
        self.assertEqual(positions["A-1"], 1)
        self.assertEqual(positions["C-2"], 2)
        self.assertEqual(positions["B-1"], 3)
        self.assertEqual(positions["D-1"], 4)

    def test_corrected_semifinal_regenerates_unplayed_round(self):
        self.builder.play_round(1, 1, [TEAM1_WINS] * 2)
        self.assertEqual(names(self.builder, self.tournament.round_matches(1, 2)[0]), ("A", "C"))

        with self.assertLogs(PROGRESS_LOGGER, level="WARNING"):
            self.builder.play("A", "B", 3, 6)

        final, third = self.tournament.round_matches(1, 2)
        self.assertEqual(names(self.builder, final), ("B", "C"))
        self.assertEqual(names(self.builder, third), ("A", "D"))
        self.assertEqual([final.match_number, third.match_number], [3, 4])
        self.assertEqual(len(self.tournament.matches), 4)

    def test_started_round_is_frozen(self):
        self.builder.play_round(1, 1, [TEAM1_WINS] * 2)
        self.builder.play("A", "C", 6, 4)

        with self.assertLogs(PROGRESS_LOGGER, level="WARNING"):
            self.builder.play("A", "B", 3, 6)

        final = self.tournament.round_matches(1, 2)[0]
        self.assertEqual(names(self.builder, final), ("A", "C"))
        self.assertTrue(final.is_completed)

    def test_frozen_round_does_not_block_the_placement_round(self):
        self.builder.play_round(1, 1, [TEAM1_WINS] * 2)
        self.builder.play("A", "C", 6, 4)

        with self.assertLogs(PROGRESS_LOGGER, level="WARNING"):
            self.builder.play("A", "B", 3, 6)
        self.assertEqual(self.tournament.status, TournamentStatus.IN_PROGRESS)

        with self.assertLogs(PROGRESS_LOGGER, level="WARNING"):
            self.builder.play("B", "D", 6, 0)

        self.assertEqual(self.tournament.status, TournamentStatus.FINISHED)
        positions = {r.player_id: r.final_position for r in self.builder.book.tournament_results("KO")}
        self.assertEqual(
            [positions[p] for p in ("A-1", "C-1", "B-1", "D-1")], [1, 2, 3, 4]
        )

    def test_corrected_semifinal_after_finish_updates_bonus(self):
        self.builder.play_round(1, 1, [TEAM1_WINS] * 2)
        self.builder.play("A", "C", 6, 4)
        self.builder.play("B", "D", 6, 0)
        self.assertEqual(self.builder.book.get_result("KO", "A-1").bonus_points, 2)

        semifinal = self.tournament.round_matches(1, 1)[0]
        with self.assertLogs(PROGRESS_LOGGER, level="WARNING"):
            advancement = submit_result(self.tournament, semifinal.id, 3, 6, self.builder.book)

        self.assertEqual(advancement, Advancement.REFINALIZED)
        a_result = self.builder.book.get_result("KO", "A-1")
        b_result = self.builder.book.get_result("KO", "B-1")
        self.assertEqual((a_result.final_position, a_result.bonus_points), (1, 1))
        self.assertEqual((b_result.final_position, b_result.bonus_points), (3, 2))
        a_stats = self.builder.book.get("A-1")
        # 7.5 for first place + the final, the semifinal no longer counts
        self.assertEqual(a_stats.tournament_points, 8.5)
        self.assertEqual(a_stats.tournaments_played, 1)

    def test_corrected_final_refinalizes_without_double_counting(self):
        self.builder.play_round(1, 1, [TEAM1_WINS] * 2)
        self.builder.play("A", "C", 6, 4)
        self.builder.play("B", "D", 6, 0)
        self.assertEqual(self.builder.book.get("A-1").tournaments_won, 1)

        final = self.tournament.round_matches(1, 2)[0]
        advancement = submit_result(self.tournament, final.id, 2, 6, self.builder.book)

        self.assertEqual(advancement, Advancement.REFINALIZED)
        a_stats = self.builder.book.get("A-1")
        c_stats = self.builder.book.get("C-1")
        self.assertEqual((a_stats.tournaments_played, a_stats.tournaments_won), (1, 0))
        self.assertEqual((c_stats.tournaments_played, c_stats.tournaments_won), (1, 1))
        # C: 7.5 for first place + 2 wins; A: 5 for second place + 1 win
        self.assertEqual(c_stats.tournament_points, 9.5)
        self.assertEqual(a_stats.tournament_points, 6)
        self.assertEqual(len(self.builder.book.tournament_results("KO")), 8)


class TestEightTeamKnockout(unittest.TestCase):
    def test_full_bracket(self):
        builder = TournamentBuilder("KO8").knockout().teams(*"ABCDEFGH")
        tournament = builder.tournament

        builder.play_round(1, 1, [TEAM1_WINS] * 4)
        round_two = tournament.round_matches(1, 2)
        self.assertEqual([m.match_number for m in round_two], [5, 6, 7, 8])
        self.assertEqual(
            [names(builder, m) for m in round_two],
            [("A", "C"), ("E", "G"), ("B", "D"), ("F", "H")],
        )

        builder.play_round(1, 2, [TEAM1_WINS] * 4)
        round_three = tournament.round_matches(1, 3)
        self.assertEqual([m.match_number for m in round_three], [9, 10, 11, 12])
        self.assertEqual(
            [(m.slot, names(builder, m)) for m in round_three],
            [
                (BracketSlot.FINAL, ("A", "E")),
                (BracketSlot.THIRD_PLACE, ("C", "G")),
                (BracketSlot.FIFTH_PLACE, ("B", "F")),
                (BracketSlot.SEVENTH_PLACE, ("D", "H")),
            ],
        )

        builder.play_round(1, 3, [TEAM1_WINS] * 4)
        self.assertEqual(tournament.status, TournamentStatus.FINISHED)
        positions = {r.player_id: r.final_position for r in builder.book.tournament_results("KO8")}
        expected = dict(zip("AEGCBFDH", [1, 2, 4, 3, 5, 6, 7, 8]))
        for team, position in expected.items():
            self.assertEqual(positions[f"{team}-1"], position, team)

    def test_frozen_round_still_produces_placement_round(self):
        builder = TournamentBuilder("KO8").knockout().teams(*"ABCDEFGH")
        tournament = builder.tournament
        builder.play_round(1, 1, [TEAM1_WINS] * 4)
        builder.play("A", "C", 6, 4)

        with self.assertLogs(PROGRESS_LOGGER, level="WARNING"):
            builder.play("A", "B", 3, 6)
            builder.play("E", "G", 6, 2)
            builder.play("B", "D", 6, 2)
            builder.play("F", "H", 6, 2)

        self.assertEqual(sorted(tournament.rounds(1)), [1, 2, 3])
        self.assertEqual(
            [(m.slot, names(builder, m)) for m in tournament.round_matches(1, 3)],
            [
                (BracketSlot.FINAL, ("A", "E")),
                (BracketSlot.THIRD_PLACE, ("C", "G")),
                (BracketSlot.FIFTH_PLACE, ("B", "F")),
                (BracketSlot.SEVENTH_PLACE, ("D", "H")),
            ],
        )

    def test_six_team_knockout_stops_after_first_round(self):
        builder = TournamentBuilder("KO6").knockout().teams(*"ABCDEF")

        with self.assertLogs(PROGRESS_LOGGER, level="WARNING"):
            builder.play_round(1, 1, [TEAM1_WINS] * 3)

        self.assertEqual(len(builder.tournament.matches), 3)
        self.assertEqual(builder.tournament.status, TournamentStatus.IN_PROGRESS)


class TestGroupStageKnockout(unittest.TestCase):
    """Group stage followed by placement playoffs."""

    def single_group(self):
        builder = TournamentBuilder("GSK").group_stage_knockout().teams("A", "B", "C", "D")
        builder.play("A", "B", 6, 3)
        builder.play("C", "D", 6, 4)
        builder.play("A", "C", 6, 5)
        builder.play("B", "D", 6, 4)
        builder.play("A", "D", 6, 2)
        return builder

    def test_group_completion_schedules_playoffs(self):
        builder = self.single_group()
        tournament = builder.tournament
        self.assertEqual(tournament.current_phase, 1)

        builder.play("C", "B", 6, 4)

        self.assertEqual(tournament.current_phase, 2)
        self.assertEqual(tournament.status, TournamentStatus.PHASE_1_COMPLETE)
        final, third = tournament.round_matches(2, 1)
        self.assertEqual((final.slot, names(builder, final)), (BracketSlot.FINAL, ("A", "C")))
        self.assertEqual((third.slot, names(builder, third)), (BracketSlot.THIRD_PLACE, ("B", "D")))

    def test_playoffs_finish_tournament(self):
        builder = self.single_group()
        builder.play("C", "B", 6, 4)
        builder.play("A", "C", 6, 4)
        builder.play("B", "D", 6, 3)

        self.assertEqual(builder.tournament.status, TournamentStatus.FINISHED)
        result = builder.book.get_result("GSK", "A-1")
        self.assertEqual(result.final_position, 1)
        self.assertEqual(result.bonus_points, 4)

    def test_corrected_group_result_reseeds_unplayed_playoffs(self):
        builder = self.single_group()
        builder.play("C", "B", 6, 4)

        with self.assertLogs(PROGRESS_LOGGER, level="WARNING"):
            builder.play("C", "B", 4, 6)

        final, third = builder.tournament.round_matches(2, 1)
        self.assertEqual(names(builder, final), ("A", "B"))
        self.assertEqual(names(builder, third), ("C", "D"))
        self.assertEqual(len(builder.tournament.matches), 8)

    def test_started_playoffs_are_frozen(self):
        builder = self.single_group()
        builder.play("C", "B", 6, 4)
        builder.play("A", "C", 6, 4)

        with self.assertLogs(PROGRESS_LOGGER, level="WARNING"):
            builder.play("C", "B", 4, 6)

        final, third = builder.tournament.round_matches(2, 1)
        self.assertEqual(names(builder, final), ("A", "C"))
        self.assertEqual(names(builder, third), ("B", "D"))

    def test_two_groups(self):
        builder = TournamentBuilder("GSK8").group_stage_knockout().teams(*"ABCDEFGH")
        tournament = builder.tournament

        builder.play_round(1, 1, [TEAM1_WINS] * 12)

        round_one = tournament.round_matches(2, 1)
        self.assertEqual(
            [names(builder, m) for m in round_one],
            [("A", "F"), ("B", "E"), ("C", "H"), ("G", "D")],
        )

        builder.play_round(2, 1, [TEAM1_WINS] * 4)
        round_two = tournament.round_matches(2, 2)
        self.assertEqual([m.match_number for m in round_two], [5, 6, 7, 8])
        self.assertEqual(
            [names(builder, m) for m in round_two],
            [("A", "B"), ("F", "E"), ("C", "G"), ("H", "D")],
        )

        builder.play_round(2, 2, [TEAM1_WINS] * 4)
        self.assertEqual(tournament.status, TournamentStatus.FINISHED)
        positions = {r.player_id: r.final_position for r in builder.book.tournament_results("GSK8")}
        expected = dict(zip("ABFECGHD", range(1, 9)))
        for team, position in expected.items():
            self.assertEqual(positions[f"{team}-2"], position, team)

    def test_three_groups(self):
        builder = TournamentBuilder("GSK12").group_stage_knockout().teams(*"ABCDEFGHIJKL")
        tournament = builder.tournament

        builder.play_round(1, 1, [TEAM1_WINS] * 18)

        round_one = tournament.round_matches(2, 1)
        self.assertEqual(len(round_one), 6)
        self.assertEqual(
            [set(names(builder, m)) for m in round_one[:2]],
            [{"A", "I"}, {"E", "B"}],
        )
        group_of = {name: "ABCDEFGHIJKL".index(name) // 4 for name in "ABCDEFGHIJKL"}
        for match in round_one:
            first, second = names(builder, match)
            self.assertNotEqual(group_of[first], group_of[second], f"{first} v {second}")

        builder.play_round(2, 1, [TEAM1_WINS] * 6)
        round_two = tournament.round_matches(2, 2)
        self.assertEqual([m.match_number for m in round_two], list(range(7, 13)))
        self.assertEqual(
            [m.slot.placement for m in round_two],
            [(1, 2), (3, 4), (5, 6), (7, 8), (9, 10), (11, 12)],
        )

        builder.play_round(2, 2, [TEAM1_WINS] * 6)
        self.assertEqual(tournament.status, TournamentStatus.FINISHED)
        results = builder.book.tournament_results("GSK12")
        self.assertEqual(len(results), 24)
        self.assertEqual(sorted({r.final_position for r in results}), list(range(1, 13)))


if __name__ == "__main__":
    unittest.main()
