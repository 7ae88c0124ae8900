import random
import unittest

from application.services import (
    assign_late_player,
    auto_assign_players,
    auto_balance_after_change,
    create_tables,
    eliminate_participant,
    get_balance_summary,
    get_table_layout,
    get_unassigned_participants,
    move_player,
    reseat_after_rebuy,
    toggle_lock,
    undo_elimination,
)
from domain.errors import InvalidConfigurationError, NotFoundError, PersistenceError
from domain.layout import BalanceStatus
from domain.models import Tournament

from fakes import (
    FailingTournamentRepository,
    InMemoryTournamentRepository,
    active_counts,
    make_tournament,
    seat_pairs,
    unseated_players,
)


class SetupFlowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.repo = InMemoryTournamentRepository(
            Tournament(id="t1", seats_per_table=9, participants=tuple(unseated_players(20)))
        )

    def test_create_assign_and_balance(self):
        tables = create_tables("t1", self.repo)
        self.assertEqual([t.table_number for t in tables], [1, 2, 3])

        assignments = auto_assign_players("t1", self.repo, rng=random.Random(8))
        self.assertEqual(len(assignments), 20)
        self.assertEqual(active_counts(self.repo.tournaments["t1"]), [9, 9, 2])
        self.assertEqual(get_unassigned_participants("t1", self.repo), [])

        result = auto_balance_after_change("t1", self.repo, rng=random.Random(8))
        self.assertEqual(len(result.movements), 4)
        self.assertEqual(active_counts(self.repo.tournaments["t1"]), [7, 7, 6])

        again = auto_balance_after_change("t1", self.repo, rng=random.Random(8))
        self.assertEqual(again.movements, [])

    def test_layout_and_summary_after_assignment(self):
        create_tables("t1", self.repo)
        auto_assign_players("t1", self.repo, rng=random.Random(8))

        layouts = get_table_layout("t1", self.repo)
        summary = get_balance_summary("t1", self.repo)

        self.assertEqual([layout.player_count for layout in layouts], [9, 9, 2])
        self.assertEqual(summary.status, BalanceStatus.IMBALANCED)

    def test_invalid_seat_count(self):
        repo = InMemoryTournamentRepository(Tournament(id="bad", seats_per_table=0))
        with self.assertRaises(InvalidConfigurationError):
            create_tables("bad", repo)
        self.assertEqual(repo.saves, 0)

    def test_unknown_tournament(self):
        with self.assertRaises(NotFoundError):
            auto_balance_after_change("nope", self.repo)
        with self.assertRaises(NotFoundError):
            get_table_layout("nope", self.repo)


class LatePlayerTests(unittest.TestCase):
    def test_full_tables_get_a_new_one_and_are_rebalanced(self):
        tournament = make_tournament(9, [9, 9])
        repo = InMemoryTournamentRepository(tournament)
        repo.tournaments["t1"] = Tournament(
            id="t1",
            seats_per_table=9,
            tables=tournament.tables,
            participants=tournament.participants + tuple(unseated_players(1)),
        )

        assignment = assign_late_player("new-1", repo, rng=random.Random(2))

        self.assertEqual((assignment.table_number, assignment.seat_number), (3, 1))
        stored = repo.tournaments["t1"]
        self.assertEqual(active_counts(stored), [7, 6, 6])
        self.assertEqual(repo.saves, 1)

    def test_eliminated_player_gets_nothing(self):
        repo = InMemoryTournamentRepository(make_tournament(9, [3, 3]))
        eliminate_participant("p1-1", repo, rng=random.Random(1))

        self.assertIsNone(assign_late_player("p1-1", repo))

    def test_unknown_participant(self):
        repo = InMemoryTournamentRepository(make_tournament(9, [3]))
        with self.assertRaises(NotFoundError):
            assign_late_player("ghost", repo)

    def test_locked_seated_player_stays_put(self):
        repo = InMemoryTournamentRepository(make_tournament(9, [5, 5], locked=("p2-1",)))

        assignment = assign_late_player("p2-1", repo, rng=random.Random(4))

        self.assertEqual(
            (assignment.table_id, assignment.seat_number, assignment.locked),
            ("table-2", 1, True),
        )
        self.assertTrue(repo.tournaments["t1"].get_participant("p2-1").locked)


class ManualOverrideServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.repo = InMemoryTournamentRepository(make_tournament(9, [4, 4]))

    def test_refused_move_saves_nothing(self):
        self.assertFalse(move_player("p1-1", "table-2", 1, self.repo))
        self.assertEqual(self.repo.saves, 0)

    def test_move_does_not_rebalance(self):
        self.assertTrue(move_player("p1-1", "table-2", 5, self.repo))
        self.assertTrue(move_player("p1-2", "table-2", 6, self.repo))
        self.assertEqual(active_counts(self.repo.tournaments["t1"]), [2, 6])

    def test_toggle_lock_round_trip(self):
        self.assertTrue(toggle_lock("p2-3", self.repo))
        self.assertTrue(self.repo.tournaments["t1"].get_participant("p2-3").locked)
        self.assertFalse(toggle_lock("p2-3", self.repo))

    def test_unknown_participant(self):
        with self.assertRaises(NotFoundError):
            toggle_lock("ghost", self.repo)


class EliminationWorkflowTests(unittest.TestCase):
    def test_elimination_consolidates_when_everyone_fits(self):
        repo = InMemoryTournamentRepository(make_tournament(10, [5, 5]))

        result = eliminate_participant("p1-1", repo, rng=random.Random(1))

        self.assertTrue(result.table_broken)
        stored = repo.tournaments["t1"]
        self.assertEqual(active_counts(stored), [9])
        knocked_out = stored.get_participant("p1-1")
        self.assertTrue(knocked_out.eliminated)
        self.assertEqual((knocked_out.table_id, knocked_out.seat_number), ("table-1", 1))

    def test_undo_reseats_when_old_seat_was_taken(self):
        repo = InMemoryTournamentRepository(make_tournament(10, [5, 5]))
        eliminate_participant("p1-1", repo, rng=random.Random(1))

        undo_elimination("p1-1", repo, rng=random.Random(1))

        stored = repo.tournaments["t1"]
        back = stored.get_participant("p1-1")
        self.assertFalse(back.eliminated)
        self.assertEqual((back.table_id, back.seat_number), ("table-1", 10))
        pairs = seat_pairs(stored)
        self.assertEqual(len(pairs), len(set(pairs)))
        self.assertEqual(active_counts(stored), [10])

    def test_undo_of_active_player_changes_nothing(self):
        repo = InMemoryTournamentRepository(make_tournament(9, [3]))
        result = undo_elimination("p1-1", repo)
        self.assertEqual(result.movements, [])
        self.assertEqual(repo.saves, 0)

    def test_rebuy_reseats_with_new_stack(self):
        repo = InMemoryTournamentRepository(make_tournament(6, [5, 5]))
        eliminate_participant("p2-1", repo, rng=random.Random(1))

        assignment = reseat_after_rebuy("p2-1", 5000, repo, rng=random.Random(1))

        self.assertEqual((assignment.table_number, assignment.seat_number), (2, 1))
        rebought = repo.tournaments["t1"].get_participant("p2-1")
        self.assertFalse(rebought.eliminated)
        self.assertEqual(rebought.current_stack, 5000)


class StaleIndexRepository(InMemoryTournamentRepository):
    """Points every participant at t1, even ones t1 no longer holds."""

    def find_tournament_id_for_participant(self, participant_id):
        return "t1"


class VanishedParticipantTests(unittest.TestCase):
    def test_workflows_raise_not_found(self):
        repo = StaleIndexRepository(make_tournament(9, [3]))

        with self.assertRaises(NotFoundError):
            eliminate_participant("gone", repo)
        with self.assertRaises(NotFoundError):
            undo_elimination("gone", repo)
        with self.assertRaises(NotFoundError):
            reseat_after_rebuy("gone", 5000, repo)
        self.assertEqual(repo.saves, 0)


class PersistenceFailureTests(unittest.TestCase):
    def test_failed_save_leaves_stored_state_untouched(self):
        original = make_tournament(9, [9, 9, 2])
        repo = FailingTournamentRepository(original)

        with self.assertRaises(PersistenceError) as ctx:
            auto_balance_after_change("t1", repo, rng=random.Random(1))

        self.assertTrue(ctx.exception.retryable)
        self.assertIs(repo.tournaments["t1"], original)

    def test_failed_late_assignment_is_not_applied(self):
        original = make_tournament(9, [9, 9])
        original = Tournament(
            id="t1",
            seats_per_table=9,
            tables=original.tables,
            participants=original.participants + tuple(unseated_players(1)),
        )
        repo = FailingTournamentRepository(original)

        with self.assertRaises(PersistenceError):
            assign_late_player("new-1", repo)

        self.assertIs(repo.tournaments["t1"], original)
        self.assertEqual(len(original.active_tables()), 2)


if __name__ == "__main__":
    unittest.main()
