from __future__ import annotations

from domain.repositories import TournamentRepository
from infrastructure.config import Settings


def build_repository(settings: Settings) -> TournamentRepository:
    """Return the repository for the configured backend."""

    if settings.db_backend == "postgres":
        from infrastructure.db.tournament_repository_postgres import (
            PostgresTournamentRepository,
        )

        return PostgresTournamentRepository(settings.postgres_params)

    from infrastructure.db.tournament_repository_sqlite import SqliteTournamentRepository

    return SqliteTournamentRepository(settings.db_path)
