from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

from .board import SeatingBoard
from .models import Participant, SeatInfo, TableLayout, Tournament


class BalanceStatus(Enum):
    NO_TABLES = "no_tables"
    PERFECT = "perfect"
    BALANCED = "balanced"
    IMBALANCED = "imbalanced"


@dataclass(frozen=True)
class BalanceSummary:
    status: BalanceStatus
    spread: int
    player_counts: Tuple[int, ...]

    @property
    def label(self) -> str:
        if self.status is BalanceStatus.NO_TABLES:
            return "No tables"
        if self.status is BalanceStatus.PERFECT:
            return "Perfectly balanced"
        if self.status is BalanceStatus.BALANCED:
            return "Balanced"
        return f"Unbalanced (spread of {self.spread} players)"


def build_layout(tournament: Tournament) -> List[TableLayout]:
    """Seat-by-seat view of every active table, ordered by table number."""

    board = SeatingBoard(tournament)
    layouts = []
    for table in board.active_tables():
        seats = []
        for seat_number in range(1, table.max_seats + 1):
            occupant = board.occupant_at(table.id, seat_number)
            if occupant is None:
                seats.append(SeatInfo(seat_number=seat_number, occupied=False))
                continue
            seats.append(
                SeatInfo(
                    seat_number=seat_number,
                    occupied=True,
                    participant_id=occupant.id,
                    name=occupant.name,
                    locked=occupant.locked,
                    stack=occupant.current_stack,
                )
            )
        layouts.append(
            TableLayout(
                table_id=table.id,
                table_number=table.table_number,
                max_seats=table.max_seats,
                seats=tuple(seats),
            )
        )
    return layouts


def summarize_balance(layouts: Sequence[TableLayout]) -> BalanceSummary:
    counts = tuple(layout.player_count for layout in layouts)
    if not counts:
        return BalanceSummary(BalanceStatus.NO_TABLES, 0, counts)

    spread = max(counts) - min(counts)
    if spread == 0:
        status = BalanceStatus.PERFECT
    elif spread == 1:
        status = BalanceStatus.BALANCED
    else:
        status = BalanceStatus.IMBALANCED
    return BalanceSummary(status, spread, counts)


def unassigned_participants(tournament: Tournament) -> List[Participant]:
    """Players still in the tournament who have no usable seat."""

    return SeatingBoard(tournament).strays()
