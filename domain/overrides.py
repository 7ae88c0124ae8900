from __future__ import annotations

import logging
from typing import Tuple

from .board import SeatingBoard
from .errors import NotFoundError
from .models import Tournament
from .seat_locks import with_lock_toggled

logger = logging.getLogger(__name__)


def move_player(
    tournament: Tournament,
    participant_id: str,
    target_table_id: str,
    target_seat: int,
) -> Tuple[Tournament, bool]:
    """
    Put a participant on a chosen seat, bypassing the balancer.

    A closed table, a seat outside the table or a seat held by another
    active player is refused with False and the snapshot is returned as
    is. The lock flag is left alone.
    """

    participant = tournament.get_participant(participant_id)
    if participant is None:
        raise NotFoundError(f"Participant {participant_id} not found")
    table = tournament.get_table(target_table_id)
    if table is None:
        raise NotFoundError(f"Table {target_table_id} not found")

    if participant.eliminated or not table.is_active:
        logger.warning(
            "Refused move of %s to table %s: table closed or player eliminated",
            participant.name,
            table.table_number,
        )
        return tournament, False
    if not 1 <= target_seat <= table.max_seats:
        logger.warning(
            "Refused move of %s: table %s has no seat %s",
            participant.name,
            table.table_number,
            target_seat,
        )
        return tournament, False

    board = SeatingBoard(tournament)
    occupant = board.occupant_at(table.id, target_seat)
    if occupant is not None and occupant.id != participant.id:
        logger.warning(
            "Refused move of %s: table %s seat %s is taken by %s",
            participant.name,
            table.table_number,
            target_seat,
            occupant.name,
        )
        return tournament, False

    board.seat(participant.id, table.id, target_seat)
    logger.info(
        "Moved %s to table %s seat %s by hand",
        participant.name,
        table.table_number,
        target_seat,
    )
    return board.snapshot(), True


def toggle_lock(tournament: Tournament, participant_id: str) -> Tuple[Tournament, bool]:
    participant = tournament.get_participant(participant_id)
    if participant is None:
        raise NotFoundError(f"Participant {participant_id} not found")

    toggled = with_lock_toggled(participant)
    logger.info("%s %s", "Locked" if toggled.locked else "Unlocked", participant.name)
    return tournament.with_participant(toggled), toggled.locked
