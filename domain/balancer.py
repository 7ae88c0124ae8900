"""
Table balancing.

After every elimination, rebuy or late registration the engine decides
between three moves, taking the first that applies:

1. Consolidate: everyone fits on one table, so all players go to the
   lowest-numbered table and the others close.
2. Break: there are more tables than ceil(players / seats) needs. The
   emptiest table (newest on a tie) closes and its players go one by one
   to whichever remaining table is emptiest at that moment.
3. Equalize: table count is right, so players are moved from tables over
   their target size to tables under it until the spread is at most one.

Locked players are only moved when their table closes, which also
releases the lock. During Equalize a table can stay over target when
only locked players could leave it.

Tables can have fewer seats than the tournament default. A merge or a
break only runs when the receiving tables have the seats for it;
otherwise the next move down the list is used.
"""

from __future__ import annotations

import logging
import math
import random
from enum import Enum
from typing import Dict, List, Tuple

from .board import SeatingBoard
from .errors import InvalidConfigurationError, NoCapacityError
from .models import BalanceResult, PlayerMovement, PokerTable, Tournament
from .seat_locks import is_movable, unlocked
from .seating import fisher_yates_shuffle, reseat_strays

logger = logging.getLogger(__name__)


class BalanceAction(Enum):
    NONE = "none"
    CONSOLIDATE = "consolidate"
    BREAK = "break"
    EQUALIZE = "equalize"


def choose_action(
    player_count: int,
    table_count: int,
    seats_per_table: int,
    main_table_fits: bool = True,
    break_fits: bool = True,
) -> BalanceAction:
    """
    Pick the first balancing move whose condition holds.

    `main_table_fits` and `break_fits` carry the real seat capacity of the
    tables: a table smaller than `seats_per_table` can make a merge or a
    break impossible, in which case the tables are only equalized.
    """

    if player_count == 0 or table_count == 0:
        return BalanceAction.NONE
    if seats_per_table <= 0:
        raise InvalidConfigurationError(
            f"Seats per table must be positive, got {seats_per_table}"
        )
    if player_count <= seats_per_table and table_count > 1 and main_table_fits:
        return BalanceAction.CONSOLIDATE
    if table_count > math.ceil(player_count / seats_per_table) and break_fits:
        return BalanceAction.BREAK
    return BalanceAction.EQUALIZE


def equalize_targets(tables: List[PokerTable], player_count: int) -> Dict[str, int]:
    """
    Target size per table id: the lowest-numbered tables take the remainder.

    A table with fewer seats than its share is capped at its size and the
    rest is spread over the other tables.
    """

    targets: Dict[str, int] = {}
    pending = sorted(tables, key=lambda t: t.table_number)
    remaining = player_count
    while pending:
        base, remainder = divmod(remaining, len(pending))
        shares = {t.id: base + (1 if i < remainder else 0) for i, t in enumerate(pending)}
        capped = [t for t in pending if t.max_seats < shares[t.id]]
        if not capped:
            targets.update(shares)
            break
        for table in capped:
            targets[table.id] = table.max_seats
            remaining -= table.max_seats
        pending = [t for t in pending if t.max_seats >= shares[t.id]]
    return targets


def _relocate(board: SeatingBoard, participant_id: str, table: PokerTable) -> PlayerMovement:
    seat = board.free_seat(table.id)
    if seat is None:
        raise NoCapacityError(f"Table {table.table_number} has no free seat")
    movement = board.move(participant_id, table.id, seat)
    logger.debug(
        "Moved %s from table %s seat %s to table %s seat %s",
        movement.participant_name,
        movement.from_table,
        movement.from_seat,
        movement.to_table,
        movement.to_seat,
    )
    return movement


def _consolidate(board: SeatingBoard) -> BalanceResult:
    tables = board.active_tables()
    main, others = tables[0], tables[1:]

    leaving = [p for table in others for p in board.occupants(table.id)]
    # Free players take the low seats, formerly locked players the rest.
    leaving.sort(key=lambda p: not is_movable(p))

    movements = []
    for participant in leaving:
        board.update(unlocked(participant))
        movements.append(_relocate(board, participant.id, main))

    for table in others:
        board.close_table(table.id)

    closed = [t.table_number for t in others]
    return BalanceResult(
        table_broken=True,
        broken_table_numbers=closed,
        movements=movements,
        message=(
            f"Consolidated onto table {main.table_number}, "
            f"{len(closed)} table(s) closed."
        ),
    )


def _table_to_break(board: SeatingBoard) -> PokerTable:
    """Fewest occupants; the highest number closes on a tie."""

    return min(board.active_tables(), key=lambda t: (board.count(t.id), -t.table_number))


def _free_seats_elsewhere(board: SeatingBoard, table: PokerTable) -> int:
    return sum(
        t.max_seats - board.count(t.id) for t in board.active_tables() if t.id != table.id
    )


def _break_table(board: SeatingBoard) -> BalanceResult:
    tables = board.active_tables()
    doomed = _table_to_break(board)
    remaining = [t for t in tables if t.id != doomed.id]

    movements = []
    for participant in board.occupants(doomed.id):
        open_tables = [t for t in remaining if board.has_room(t.id)]
        if not open_tables:
            raise NoCapacityError(
                f"No room left to break table {doomed.table_number}"
            )
        target = min(open_tables, key=lambda t: (board.count(t.id), t.table_number))
        board.update(unlocked(participant))
        movements.append(_relocate(board, participant.id, target))

    board.close_table(doomed.id)
    return BalanceResult(
        table_broken=True,
        broken_table_numbers=[doomed.table_number],
        movements=movements,
        message=(
            f"Table {doomed.table_number} broken, "
            f"{len(movements)} player(s) moved."
        ),
    )


def _equalize(board: SeatingBoard, player_count: int, rng: random.Random) -> BalanceResult:
    tables = board.active_tables()
    counts = [board.count(t.id) for t in tables]
    if max(counts) - min(counts) <= 1:
        return BalanceResult(message="Tables already balanced.")

    targets = equalize_targets(tables, player_count)
    overloaded = [t for t in tables if board.count(t.id) > targets[t.id]]
    overloaded.sort(key=lambda t: (-board.count(t.id), t.table_number))

    movements = []
    stuck = []
    for table in overloaded:
        excess = board.count(table.id) - targets[table.id]
        movers = [p for p in board.occupants(table.id) if is_movable(p)]
        chosen = fisher_yates_shuffle(movers, rng)[:excess]
        if len(chosen) < excess:
            stuck.append(table.table_number)

        for participant in chosen:
            short = [
                t
                for t in tables
                if board.count(t.id) < targets[t.id] and board.has_room(t.id)
            ]
            if not short:
                break
            target = min(short, key=lambda t: (board.count(t.id), t.table_number))
            movements.append(_relocate(board, participant.id, target))

    if stuck:
        logger.warning(
            "Table(s) %s left over target: only locked players could move",
            ", ".join(str(n) for n in stuck),
        )

    if movements:
        message = f"Tables equalized, {len(movements)} player(s) moved."
    elif stuck:
        message = "Tables left unbalanced: locked seats prevent moves."
    else:
        message = "Tables already balanced."
    return BalanceResult(movements=movements, message=message)


def rebalance(tournament: Tournament, rng: random.Random) -> Tuple[Tournament, BalanceResult]:
    """
    Run one balancing step: the first of Consolidate, Break or Equalize
    whose condition holds.
    """

    board = SeatingBoard(tournament)
    player_count = board.total_seated()
    tables = board.active_tables()
    main_table_fits = break_fits = False
    if tables:
        main_table_fits = tables[0].max_seats >= player_count
        doomed = _table_to_break(board)
        break_fits = _free_seats_elsewhere(board, doomed) >= board.count(doomed.id)
    action = choose_action(
        player_count,
        len(tables),
        tournament.seats_per_table,
        main_table_fits=main_table_fits,
        break_fits=break_fits,
    )
    unconstrained = choose_action(player_count, len(tables), tournament.seats_per_table)
    if action is not unconstrained:
        logger.warning(
            "Not enough seats to %s; running %s instead",
            unconstrained.value,
            action.value,
        )

    if action is BalanceAction.NONE:
        return tournament, BalanceResult(message="Nothing to balance.")
    if action is BalanceAction.CONSOLIDATE:
        result = _consolidate(board)
    elif action is BalanceAction.BREAK:
        result = _break_table(board)
    else:
        result = _equalize(board, player_count, rng)

    logger.info(
        "Balance step %s: %d move(s), closed %s",
        action.value,
        len(result.movements),
        result.broken_table_numbers or "none",
    )
    return board.snapshot(), result


def settle(tournament: Tournament, rng: random.Random) -> Tuple[Tournament, BalanceResult]:
    """
    Balance until a step changes nothing.

    Players without a valid seat are placed first. Each following step
    either closes a table or brings an over-target table closer to its
    target, so the loop ends.
    """

    board = SeatingBoard(tournament)
    reseated = reseat_strays(board)
    if reseated:
        logger.info("Reseated %d player(s) without a valid seat", len(reseated))
    current = board.snapshot()

    combined = BalanceResult()
    messages = []
    max_steps = len(current.tables) + len(current.participants) + 1
    for _ in range(max_steps):
        current, step = rebalance(current, rng)
        if not step.movements and not step.table_broken:
            if not messages:
                messages.append(step.message)
            break
        combined.table_broken = combined.table_broken or step.table_broken
        combined.broken_table_numbers.extend(step.broken_table_numbers)
        combined.movements.extend(step.movements)
        messages.append(step.message)

    combined.message = " ".join(messages)
    return current, combined
