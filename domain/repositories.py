from __future__ import annotations

from typing import Optional, Protocol

from .models import Tournament


class TournamentRepository(Protocol):
    """
    Abstraction over tournament seating persistence.

    Implementations are responsible for:
    - Mapping between database rows and the `Tournament` snapshot.
    - Writing a whole snapshot atomically: either every table and seat
      change is stored, or none is.
    - Hiding any SQL / driver details from the application layer.
    """

    def load_tournament(self, tournament_id: str) -> Optional[Tournament]:
        """Return the tournament with its tables and participants, or None."""

        ...

    def save_tournament_state(self, tournament: Tournament) -> None:
        """
        Persist the snapshot in one transaction.

        Raises `PersistenceError` when the write fails; in that case the
        stored state is left exactly as it was.
        """

        ...

    def find_tournament_id_for_participant(self, participant_id: str) -> Optional[str]:
        """Return the id of the tournament the participant is entered in."""

        ...
