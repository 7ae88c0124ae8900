import unittest
from dataclasses import replace

from domain.errors import NotFoundError
from domain.models import Participant
from domain.overrides import move_player, toggle_lock
from domain.seat_locks import is_locked, is_movable, unlocked, with_lock_toggled

from fakes import make_tournament


class MovePlayerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tournament = make_tournament(9, [3, 2])

    def test_moves_to_free_seat(self):
        result_state, moved = move_player(self.tournament, "p1-1", "table-2", 5)

        self.assertTrue(moved)
        participant = result_state.get_participant("p1-1")
        self.assertEqual((participant.table_id, participant.seat_number), ("table-2", 5))

    def test_occupied_seat_is_refused(self):
        result_state, moved = move_player(self.tournament, "p1-2", "table-2", 1)

        self.assertFalse(moved)
        self.assertIs(result_state, self.tournament)

    def test_seat_of_eliminated_player_is_free(self):
        tournament = self.tournament.with_participant(
            replace(self.tournament.get_participant("p2-1"), eliminated=True)
        )

        _, moved = move_player(tournament, "p1-2", "table-2", 1)

        self.assertTrue(moved)

    def test_own_seat_is_accepted(self):
        _, moved = move_player(self.tournament, "p1-1", "table-1", 1)
        self.assertTrue(moved)

    def test_seat_outside_table_is_refused(self):
        for seat in (0, 10):
            _, moved = move_player(self.tournament, "p1-1", "table-2", seat)
            self.assertFalse(moved)

    def test_closed_table_is_refused(self):
        tournament = self.tournament.with_table(self.tournament.get_table("table-2").closed())

        _, moved = move_player(tournament, "p1-1", "table-2", 5)

        self.assertFalse(moved)

    def test_lock_flag_is_kept(self):
        tournament = self.tournament.with_participant(
            replace(self.tournament.get_participant("p1-1"), locked=True)
        )

        result_state, _ = move_player(tournament, "p1-1", "table-2", 4)

        self.assertTrue(result_state.get_participant("p1-1").locked)

    def test_unknown_ids_raise(self):
        with self.assertRaises(NotFoundError):
            move_player(self.tournament, "ghost", "table-1", 4)
        with self.assertRaises(NotFoundError):
            move_player(self.tournament, "p1-1", "table-99", 4)


class ToggleLockTests(unittest.TestCase):
    def test_toggle_flips_and_keeps_seat(self):
        tournament = make_tournament(9, [3])

        locked_state, locked = toggle_lock(tournament, "p1-3")
        unlocked_state, still_locked = toggle_lock(locked_state, "p1-3")

        self.assertTrue(locked)
        self.assertFalse(still_locked)
        participant = locked_state.get_participant("p1-3")
        self.assertEqual((participant.table_id, participant.seat_number), ("table-1", 3))
        self.assertFalse(unlocked_state.get_participant("p1-3").locked)

    def test_unknown_participant(self):
        with self.assertRaises(NotFoundError):
            toggle_lock(make_tournament(9, [3]), "ghost")


class SeatLockRegistryTests(unittest.TestCase):
    def test_movable_means_unlocked_and_still_playing(self):
        player = Participant(id="a", name="A")
        self.assertTrue(is_movable(player))
        self.assertFalse(is_movable(replace(player, locked=True)))
        self.assertFalse(is_movable(replace(player, eliminated=True)))

    def test_eliminated_players_are_not_reported_locked(self):
        player = Participant(id="a", name="A", locked=True)
        self.assertTrue(is_locked(player))
        self.assertFalse(is_locked(replace(player, eliminated=True)))

    def test_toggle_and_unlock(self):
        player = Participant(id="a", name="A")
        self.assertTrue(with_lock_toggled(player).locked)
        self.assertFalse(unlocked(with_lock_toggled(player)).locked)
        self.assertIs(unlocked(player), player)


if __name__ == "__main__":
    unittest.main()
