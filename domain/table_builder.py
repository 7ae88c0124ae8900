from __future__ import annotations

import logging
import math
from typing import List, Tuple

from .board import SeatingBoard
from .errors import InvalidConfigurationError
from .models import PokerTable, Tournament
from .seat_locks import unlocked

logger = logging.getLogger(__name__)


def table_count_for(player_count: int, seats_per_table: int) -> int:
    if seats_per_table <= 0:
        raise InvalidConfigurationError(
            f"Seats per table must be positive, got {seats_per_table}"
        )
    return max(1, math.ceil(player_count / seats_per_table))


def create_tables(tournament: Tournament) -> Tuple[Tournament, List[PokerTable]]:
    """
    Replace the tournament's active tables with a fresh set.

    Previously active tables are closed, not deleted. Seats on them are
    released (locks included) so the new set can be filled by the
    allocator.
    """

    seats_per_table = tournament.seats_per_table
    player_count = len(tournament.active_participants())
    count = table_count_for(player_count, seats_per_table)

    board = SeatingBoard(tournament)
    for participant in tournament.active_participants():
        board.unseat(participant.id)
        board.update(unlocked(board.participant(participant.id)))
    for table in board.active_tables():
        board.close_table(table.id)

    created = [board.open_table(number, seats_per_table) for number in range(1, count + 1)]
    logger.info(
        "Created %d table(s) of %d seats for %d player(s)",
        count,
        seats_per_table,
        player_count,
    )
    return board.snapshot(), created
