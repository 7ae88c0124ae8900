"""
Seat allocation: initial random seating and late-arrival placement.

Both entry points take a `Tournament` snapshot and return a new snapshot;
randomness always comes from the `random.Random` the caller passes in.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple, TypeVar

from .board import SeatingBoard, next_table_number
from .errors import NoCapacityError, NotFoundError
from .models import PokerTable, SeatAssignment, Tournament
from .seat_locks import is_locked, is_movable, unlocked

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fisher_yates_shuffle(items: Sequence[T], rng: random.Random) -> List[T]:
    """Return a uniformly shuffled copy of `items` drawn from `rng`."""

    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def lowest_free_seat(tournament: Tournament, table_id: str) -> Optional[int]:
    board = SeatingBoard(tournament)
    if table_id not in {t.id for t in board.active_tables()}:
        return None
    return board.free_seat(table_id)


def _assignment(board: SeatingBoard, participant_id: str) -> SeatAssignment:
    participant = board.participant(participant_id)
    table = board.table(participant.table_id)
    return SeatAssignment(
        participant_id=participant.id,
        participant_name=participant.name,
        table_id=table.id,
        table_number=table.table_number,
        seat_number=participant.seat_number,
        locked=participant.locked,
    )


def _open_overflow_table(board: SeatingBoard) -> PokerTable:
    if board.seats_per_table <= 0:
        raise NoCapacityError(
            f"Cannot open a table with {board.seats_per_table} seats per table"
        )
    table = board.open_table(next_table_number(board), board.seats_per_table)
    logger.info("Opened overflow table %s", table.table_number)
    return table


def place_late_arrival(board: SeatingBoard, participant_id: str) -> SeatAssignment:
    """
    Seat one participant on the emptiest active table with room.

    Ties go to the lowest table number. When every table is full a single
    new table numbered one above the highest active number is opened.
    A participant who already holds a valid seat keeps it.
    """

    if board.is_on_board(participant_id):
        return _assignment(board, participant_id)

    board.unseat(participant_id)
    if is_locked(board.participant(participant_id)):
        # Pinned to a seat that no longer exists.
        board.update(unlocked(board.participant(participant_id)))

    candidates = [t for t in board.active_tables() if board.has_room(t.id)]
    if candidates:
        target = min(candidates, key=lambda t: (board.count(t.id), t.table_number))
    else:
        target = _open_overflow_table(board)

    seat = board.free_seat(target.id)
    if seat is None:
        raise NoCapacityError(f"Table {target.table_number} has no free seat")

    board.seat(participant_id, target.id, seat)
    return _assignment(board, participant_id)


def reseat_strays(board: SeatingBoard) -> List[SeatAssignment]:
    """
    Place every non-eliminated participant who has no valid seat.

    This covers players whose table was closed under them, seat
    collisions and players who came back into the tournament.
    """

    placed = []
    for stray in board.strays():
        assignment = place_late_arrival(board, stray.id)
        logger.debug(
            "Reseated %s at table %s seat %s",
            stray.name,
            assignment.table_number,
            assignment.seat_number,
        )
        placed.append(assignment)
    return placed


def initial_random_seat(
    tournament: Tournament,
    rng: random.Random,
) -> Tuple[Tournament, List[SeatAssignment]]:
    """
    Seat every non-eliminated participant at random.

    Locked participants keep their current valid seat. Everyone else is
    shuffled and poured into the active tables in table order, each table
    filled from its lowest free seat upwards. Players left over once all
    tables are full go to overflow tables.
    """

    board = SeatingBoard(tournament)
    pinned = []
    pool = []
    for participant in tournament.active_participants():
        if is_locked(participant) and board.is_on_board(participant.id):
            pinned.append(participant.id)
            continue
        board.unseat(participant.id)
        if not is_movable(participant):
            # Pinned to a seat that no longer exists.
            board.update(unlocked(board.participant(participant.id)))
        pool.append(participant.id)

    remaining = fisher_yates_shuffle(pool, rng)
    for table in board.active_tables():
        while remaining and board.has_room(table.id):
            board.seat(remaining.pop(0), table.id, board.free_seat(table.id))

    while remaining:
        table = _open_overflow_table(board)
        while remaining and board.has_room(table.id):
            board.seat(remaining.pop(0), table.id, board.free_seat(table.id))

    assignments = [_assignment(board, pid) for pid in pinned + pool]
    assignments.sort(key=lambda a: (a.table_number, a.seat_number))
    return board.snapshot(), assignments


def assign_late_player(
    tournament: Tournament,
    participant_id: str,
) -> Tuple[Tournament, Optional[SeatAssignment]]:
    """
    Place a late registration or a rebought player.

    Returns the unchanged snapshot and None for an eliminated participant.
    """

    participant = tournament.get_participant(participant_id)
    if participant is None:
        raise NotFoundError(f"Participant {participant_id} not found")
    if participant.eliminated:
        return tournament, None

    board = SeatingBoard(tournament)
    assignment = place_late_arrival(board, participant_id)
    return board.snapshot(), assignment


def restore_participant(tournament: Tournament, participant_id: str) -> Tournament:
    """
    Undo an elimination.

    The player keeps their old seat pair only when that seat is still free
    on an active table; otherwise the pair is cleared so the next balance
    seats them like a late arrival.
    """

    participant = tournament.get_participant(participant_id)
    if participant is None:
        raise NotFoundError(f"Participant {participant_id} not found")

    board = SeatingBoard(tournament)
    back = replace(participant, eliminated=False)
    seat_free = (
        participant.is_seated
        and participant.table_id in {t.id for t in board.active_tables()}
        and 1 <= participant.seat_number <= board.table(participant.table_id).max_seats
        and board.occupant_at(participant.table_id, participant.seat_number) is None
    )
    if not seat_free:
        back = unlocked(back).unseated()
    return tournament.with_participant(back)
