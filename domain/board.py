from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from .models import Participant, PlayerMovement, PokerTable, Tournament


class SeatingBoard:
    """
    Scratch copy of a tournament used while computing a placement.

    The board indexes which seat holds whom on every active table. A
    non-eliminated participant whose seat pair does not land on a free,
    valid seat of an active table is not on the board; such participants
    are reported by `strays()`. `snapshot()` turns the board back into an
    immutable `Tournament`.
    """

    def __init__(self, tournament: Tournament) -> None:
        self._tournament = tournament
        self._tables: Dict[str, PokerTable] = {t.id: t for t in tournament.tables}
        self._participants: Dict[str, Participant] = {
            p.id: p for p in tournament.participants
        }
        self._seats: Dict[str, Dict[int, str]] = {
            t.id: {} for t in tournament.tables if t.is_active
        }

        for participant in tournament.participants:
            if participant.eliminated or not participant.is_seated:
                continue
            seats = self._seats.get(participant.table_id)
            table = self._tables.get(participant.table_id)
            if seats is None or table is None:
                continue
            seat = participant.seat_number
            if not 1 <= seat <= table.max_seats or seat in seats:
                continue
            seats[seat] = participant.id

    @property
    def seats_per_table(self) -> int:
        return self._tournament.seats_per_table

    def active_tables(self) -> List[PokerTable]:
        tables = [self._tables[table_id] for table_id in self._seats]
        return sorted(tables, key=lambda t: t.table_number)

    def table(self, table_id: str) -> PokerTable:
        return self._tables[table_id]

    def participant(self, participant_id: str) -> Participant:
        return self._participants[participant_id]

    def count(self, table_id: str) -> int:
        return len(self._seats[table_id])

    def total_seated(self) -> int:
        return sum(len(seats) for seats in self._seats.values())

    def has_room(self, table_id: str) -> bool:
        return self.count(table_id) < self._tables[table_id].max_seats

    def free_seat(self, table_id: str) -> Optional[int]:
        """Lowest unoccupied seat number, or None when the table is full."""

        seats = self._seats[table_id]
        for seat in range(1, self._tables[table_id].max_seats + 1):
            if seat not in seats:
                return seat
        return None

    def occupant_at(self, table_id: str, seat: int) -> Optional[Participant]:
        participant_id = self._seats.get(table_id, {}).get(seat)
        if participant_id is None:
            return None
        return self._participants[participant_id]

    def occupants(self, table_id: str) -> List[Participant]:
        seats = self._seats[table_id]
        return [self._participants[seats[seat]] for seat in sorted(seats)]

    def position_of(self, participant_id: str) -> Optional[Tuple[str, int]]:
        participant = self._participants[participant_id]
        if not participant.is_seated:
            return None
        seats = self._seats.get(participant.table_id)
        if seats is None or seats.get(participant.seat_number) != participant_id:
            return None
        return participant.table_id, participant.seat_number

    def is_on_board(self, participant_id: str) -> bool:
        return self.position_of(participant_id) is not None

    def strays(self) -> List[Participant]:
        """Non-eliminated participants without a valid seat, in entry order."""

        return [
            p
            for p in self._participants.values()
            if not p.eliminated and not self.is_on_board(p.id)
        ]

    def update(self, participant: Participant) -> None:
        self._participants[participant.id] = participant

    def unseat(self, participant_id: str) -> None:
        position = self.position_of(participant_id)
        if position is not None:
            table_id, seat = position
            del self._seats[table_id][seat]
        self._participants[participant_id] = self._participants[participant_id].unseated()

    def seat(self, participant_id: str, table_id: str, seat: int) -> Participant:
        if self._seats[table_id].get(seat) not in (None, participant_id):
            raise ValueError(f"Seat {seat} at table {table_id} is already taken")
        self.unseat(participant_id)
        self._seats[table_id][seat] = participant_id
        seated = self._participants[participant_id].seated_at(table_id, seat)
        self._participants[participant_id] = seated
        return seated

    def move(self, participant_id: str, table_id: str, seat: int) -> PlayerMovement:
        """Seat a participant elsewhere and describe the move."""

        before = self._participants[participant_id]
        position = self.position_of(participant_id)
        from_table = self._tables[position[0]].table_number if position else 0
        from_seat = position[1] if position else 0
        self.seat(participant_id, table_id, seat)
        return PlayerMovement(
            participant_id=participant_id,
            participant_name=before.name,
            from_table=from_table,
            from_seat=from_seat,
            to_table=self._tables[table_id].table_number,
            to_seat=seat,
        )

    def open_table(self, table_number: int, max_seats: int) -> PokerTable:
        table = PokerTable(id=str(uuid4()), table_number=table_number, max_seats=max_seats)
        self._tables[table.id] = table
        self._seats[table.id] = {}
        return table

    def close_table(self, table_id: str) -> PokerTable:
        """Close an emptied table."""

        if self._seats.get(table_id):
            raise ValueError(f"Table {table_id} still has players seated")
        closed = self._tables[table_id].closed()
        self._tables[table_id] = closed
        self._seats.pop(table_id, None)
        return closed

    def snapshot(self) -> Tournament:
        tables = tuple(self._tables.values())
        participants = tuple(self._participants.values())
        return replace(self._tournament, tables=tables, participants=participants)


def next_table_number(board: SeatingBoard) -> int:
    """One above the highest active table number (1 when none is active)."""

    numbers = [t.table_number for t in board.active_tables()]
    return max(numbers) + 1 if numbers else 1
