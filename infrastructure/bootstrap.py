from __future__ import annotations

import random
from typing import Mapping, NamedTuple, Optional

from domain.repositories import TournamentRepository
from infrastructure.config import Settings, load_settings, make_rng
from infrastructure.db.factory import build_repository
from infrastructure.logging_config import setup_logging


class SeatingContext(NamedTuple):
    settings: Settings
    tournament_repo: TournamentRepository
    rng: random.Random


def bootstrap(env: Optional[Mapping[str, str]] = None) -> SeatingContext:
    """Load settings, configure logging and open the configured repository.

    Host applications call this once and pass `tournament_repo` and `rng`
    into `application.services`.
    """

    settings = load_settings(env)
    setup_logging(settings.log_level)
    return SeatingContext(
        settings=settings,
        tournament_repo=build_repository(settings),
        rng=make_rng(settings),
    )
