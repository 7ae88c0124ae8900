import logging
import os
import tempfile
import unittest

from infrastructure.bootstrap import bootstrap
from infrastructure.db.tournament_repository_sqlite import SqliteTournamentRepository
from infrastructure.logging_config import setup_logging


class BootstrapTests(unittest.TestCase):
    def setUp(self) -> None:
        root = logging.getLogger()
        self._saved = (root.level, list(root.handlers))
        self.addCleanup(self._restore_root)

    def _restore_root(self) -> None:
        root = logging.getLogger()
        root.setLevel(self._saved[0])
        root.handlers[:] = self._saved[1]

    def test_wires_repository_rng_and_logging(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            context = bootstrap(
                {
                    "DB_PATH": os.path.join(tmpdir, "seating.db"),
                    "SEATING_SEED": "7",
                    "LOG_LEVEL": "DEBUG",
                }
            )
            again = bootstrap({"DB_PATH": os.path.join(tmpdir, "seating.db"), "SEATING_SEED": "7"})

        self.assertIsInstance(context.tournament_repo, SqliteTournamentRepository)
        self.assertEqual(context.rng.random(), again.rng.random())
        self.assertEqual(context.settings.seating_seed, 7)

    def test_setup_logging_installs_one_handler(self):
        setup_logging("DEBUG")
        setup_logging("WARNING")

        root = logging.getLogger()
        names = [h.get_name() for h in root.handlers]
        self.assertEqual(names.count("seating-console"), 1)
        self.assertEqual(root.level, logging.WARNING)


if __name__ == "__main__":
    unittest.main()
