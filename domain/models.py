from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple


class TableStatus(Enum):
    """Lifecycle state of a poker table."""

    ACTIVE = "active"
    CLOSED = "closed"


@dataclass(frozen=True)
class Participant:
    """
    A player entered in one tournament.

    `table_id` and `seat_number` are either both set or both empty. Once
    `eliminated` is true the pair is frozen and no longer checked against
    the seating invariants.
    """

    id: str
    name: str
    eliminated: bool = False
    locked: bool = False
    table_id: Optional[str] = None
    seat_number: Optional[int] = None
    current_stack: int = 0

    @property
    def is_seated(self) -> bool:
        return self.table_id is not None and self.seat_number is not None

    def seated_at(self, table_id: str, seat_number: int) -> Participant:
        return replace(self, table_id=table_id, seat_number=seat_number)

    def unseated(self) -> Participant:
        return replace(self, table_id=None, seat_number=None)


@dataclass(frozen=True)
class PokerTable:
    """
    A physical table. Closed tables are kept for audit and never reused.
    """

    id: str
    table_number: int
    max_seats: int
    status: TableStatus = TableStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status is TableStatus.ACTIVE

    def closed(self) -> PokerTable:
        return replace(self, status=TableStatus.CLOSED)


@dataclass(frozen=True)
class Tournament:
    """
    Immutable snapshot of the seating aggregate.

    Every seating operation takes one snapshot and returns a new one;
    the repository is the only place state is written.
    """

    id: str
    seats_per_table: int
    tables: Tuple[PokerTable, ...] = ()
    participants: Tuple[Participant, ...] = ()

    def active_tables(self) -> List[PokerTable]:
        """Active tables ordered by table number."""

        return sorted(
            (t for t in self.tables if t.is_active),
            key=lambda t: t.table_number,
        )

    def active_participants(self) -> List[Participant]:
        return [p for p in self.participants if not p.eliminated]

    def get_participant(self, participant_id: str) -> Optional[Participant]:
        for participant in self.participants:
            if participant.id == participant_id:
                return participant
        return None

    def get_table(self, table_id: str) -> Optional[PokerTable]:
        for table in self.tables:
            if table.id == table_id:
                return table
        return None

    def occupancy(self) -> Dict[str, int]:
        """Occupant count per active table id."""

        counts = {t.id: 0 for t in self.active_tables()}
        for participant in self.active_participants():
            if participant.table_id in counts and participant.seat_number is not None:
                counts[participant.table_id] += 1
        return counts

    def with_participant(self, participant: Participant) -> Tournament:
        participants = tuple(
            participant if p.id == participant.id else p for p in self.participants
        )
        return replace(self, participants=participants)

    def with_table(self, table: PokerTable) -> Tournament:
        if self.get_table(table.id) is None:
            return replace(self, tables=self.tables + (table,))
        tables = tuple(table if t.id == table.id else t for t in self.tables)
        return replace(self, tables=tables)


@dataclass(frozen=True)
class SeatAssignment:
    """Where a participant ended up after an automatic placement."""

    participant_id: str
    participant_name: str
    table_id: str
    table_number: int
    seat_number: int
    locked: bool = False


@dataclass(frozen=True)
class PlayerMovement:
    """One entry of the ordered movement log produced by balancing."""

    participant_id: str
    participant_name: str
    from_table: int
    from_seat: int
    to_table: int
    to_seat: int

    def to_dict(self) -> Dict:
        return {
            "participant_id": self.participant_id,
            "participant_name": self.participant_name,
            "from_table": self.from_table,
            "from_seat": self.from_seat,
            "to_table": self.to_table,
            "to_seat": self.to_seat,
        }


@dataclass
class BalanceResult:
    """Outcome of a balancing pass."""

    success: bool = True
    table_broken: bool = False
    broken_table_numbers: List[int] = field(default_factory=list)
    movements: List[PlayerMovement] = field(default_factory=list)
    message: str = ""

    @property
    def broken_table_number(self) -> Optional[int]:
        return self.broken_table_numbers[0] if self.broken_table_numbers else None

    def to_dict(self) -> Dict:
        return {
            "success": self.success,
            "table_broken": self.table_broken,
            "broken_table_number": self.broken_table_number,
            "broken_table_numbers": list(self.broken_table_numbers),
            "movements": [m.to_dict() for m in self.movements],
            "message": self.message,
        }


@dataclass(frozen=True)
class SeatInfo:
    seat_number: int
    occupied: bool
    participant_id: Optional[str] = None
    name: Optional[str] = None
    locked: Optional[bool] = None
    stack: Optional[int] = None


@dataclass(frozen=True)
class TableLayout:
    """Read-only view of one active table for the display layer."""

    table_id: str
    table_number: int
    max_seats: int
    seats: Tuple[SeatInfo, ...]

    @property
    def player_count(self) -> int:
        return sum(1 for seat in self.seats if seat.occupied)
