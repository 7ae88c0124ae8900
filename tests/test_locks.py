import threading
import unittest

from application.locks import TournamentLocks


class TournamentLocksTests(unittest.TestCase):
    def setUp(self) -> None:
        self.locks = TournamentLocks()

    def _in_thread(self, context_factory):
        entered = threading.Event()

        def run():
            with context_factory():
                entered.set()

        thread = threading.Thread(target=run, daemon=True)
        thread.start()
        return entered, thread

    def test_reader_waits_for_writer(self):
        with self.locks.exclusive("t1"):
            entered, thread = self._in_thread(lambda: self.locks.shared("t1"))
            self.assertFalse(entered.wait(0.2))
        thread.join(2)
        self.assertTrue(entered.is_set())

    def test_writer_waits_for_writer(self):
        with self.locks.exclusive("t1"):
            entered, thread = self._in_thread(lambda: self.locks.exclusive("t1"))
            self.assertFalse(entered.wait(0.2))
        thread.join(2)
        self.assertTrue(entered.is_set())

    def test_readers_share(self):
        with self.locks.shared("t1"):
            entered, thread = self._in_thread(lambda: self.locks.shared("t1"))
            self.assertTrue(entered.wait(2))
        thread.join(2)

    def test_tournaments_do_not_block_each_other(self):
        with self.locks.exclusive("t1"):
            entered, thread = self._in_thread(lambda: self.locks.exclusive("t2"))
            self.assertTrue(entered.wait(2))
        thread.join(2)

    def test_lock_is_released_on_error(self):
        with self.assertRaises(RuntimeError):
            with self.locks.exclusive("t1"):
                raise RuntimeError("boom")

        entered, thread = self._in_thread(lambda: self.locks.exclusive("t1"))
        self.assertTrue(entered.wait(2))
        thread.join(2)


if __name__ == "__main__":
    unittest.main()
