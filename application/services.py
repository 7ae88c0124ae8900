from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import List, Optional

from application.locks import TournamentLocks, tournament_locks
from domain import balancer, layout, overrides, seating, table_builder
from domain.errors import NoCapacityError, NotFoundError, PersistenceError
from domain.layout import BalanceSummary
from domain.models import (
    BalanceResult,
    Participant,
    PokerTable,
    SeatAssignment,
    TableLayout,
    Tournament,
)
from domain.repositories import TournamentRepository

logger = logging.getLogger(__name__)


def _load(tournament_repo: TournamentRepository, tournament_id: str) -> Tournament:
    tournament = tournament_repo.load_tournament(tournament_id)
    if tournament is None:
        raise NotFoundError(f"Tournament {tournament_id} not found")
    return tournament


def _tournament_id_for(tournament_repo: TournamentRepository, participant_id: str) -> str:
    tournament_id = tournament_repo.find_tournament_id_for_participant(participant_id)
    if tournament_id is None:
        raise NotFoundError(f"Participant {participant_id} not found")
    return tournament_id


def _participant(tournament: Tournament, participant_id: str) -> Participant:
    participant = tournament.get_participant(participant_id)
    if participant is None:
        raise NotFoundError(f"Participant {participant_id} not found")
    return participant


def _save(tournament_repo: TournamentRepository, tournament: Tournament) -> None:
    """
    Store the new snapshot. Snapshots are immutable, so a failed save
    leaves nothing half-applied in memory either.
    """

    try:
        tournament_repo.save_tournament_state(tournament)
    except PersistenceError:
        logger.exception("Saving tournament %s failed; nothing was applied", tournament.id)
        raise


def _rng(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else random.Random()


def _assignment_for(tournament: Tournament, participant_id: str) -> Optional[SeatAssignment]:
    participant = tournament.get_participant(participant_id)
    if participant is None or not participant.is_seated:
        return None
    table = tournament.get_table(participant.table_id)
    return SeatAssignment(
        participant_id=participant.id,
        participant_name=participant.name,
        table_id=table.id,
        table_number=table.table_number,
        seat_number=participant.seat_number,
        locked=participant.locked,
    )


def create_tables(
    tournament_id: str,
    tournament_repo: TournamentRepository,
    locks: TournamentLocks = tournament_locks,
) -> List[PokerTable]:
    """
    Close the current tables and open ceil(players / seats) fresh ones.

    Raises `InvalidConfigurationError` when seats per table is not
    positive.
    """

    with locks.exclusive(tournament_id):
        tournament = _load(tournament_repo, tournament_id)
        updated, tables = table_builder.create_tables(tournament)
        _save(tournament_repo, updated)

    logger.info("Tournament %s: %d table(s) ready", tournament_id, len(tables))
    return tables


def auto_assign_players(
    tournament_id: str,
    tournament_repo: TournamentRepository,
    rng: Optional[random.Random] = None,
    locks: TournamentLocks = tournament_locks,
) -> List[SeatAssignment]:
    """Randomly seat every remaining player; locked players stay put."""

    with locks.exclusive(tournament_id):
        tournament = _load(tournament_repo, tournament_id)
        updated, assignments = seating.initial_random_seat(tournament, _rng(rng))
        _save(tournament_repo, updated)

    logger.info("Tournament %s: %d player(s) seated", tournament_id, len(assignments))
    return assignments


def auto_balance_after_change(
    tournament_id: str,
    tournament_repo: TournamentRepository,
    rng: Optional[random.Random] = None,
    locks: TournamentLocks = tournament_locks,
) -> BalanceResult:
    """
    Rebalance the tables after an elimination, rebuy or registration.

    Calling it again without any change in between moves nobody.
    """

    with locks.exclusive(tournament_id):
        tournament = _load(tournament_repo, tournament_id)
        updated, result = balancer.settle(tournament, _rng(rng))
        if updated != tournament:
            _save(tournament_repo, updated)

    logger.info(
        "Tournament %s balanced: %d move(s). %s",
        tournament_id,
        len(result.movements),
        result.message,
    )
    return result


def assign_late_player(
    participant_id: str,
    tournament_repo: TournamentRepository,
    rng: Optional[random.Random] = None,
    locks: TournamentLocks = tournament_locks,
) -> Optional[SeatAssignment]:
    """
    Seat a late registration (or a rebought player) and rebalance.

    The placement and the rebalance are stored together. Returns where
    the player sits afterwards, or None when the player is eliminated or
    could not be seated.
    """

    tournament_id = _tournament_id_for(tournament_repo, participant_id)
    with locks.exclusive(tournament_id):
        tournament = _load(tournament_repo, tournament_id)
        try:
            placed, assignment = seating.assign_late_player(tournament, participant_id)
        except NoCapacityError:
            logger.warning("No seat available for participant %s", participant_id)
            return None
        if assignment is None:
            logger.warning("Participant %s is eliminated; not seating", participant_id)
            return None

        updated, result = balancer.settle(placed, _rng(rng))
        _save(tournament_repo, updated)

    final = _assignment_for(updated, participant_id)
    logger.info(
        "Late player %s seated at table %s seat %s (%d balancing move(s))",
        final.participant_name,
        final.table_number,
        final.seat_number,
        len(result.movements),
    )
    return final


def move_player(
    participant_id: str,
    target_table_id: str,
    target_seat: int,
    tournament_repo: TournamentRepository,
    locks: TournamentLocks = tournament_locks,
) -> bool:
    """
    Manually seat a player. Returns False when the seat is taken or
    invalid; no rebalancing follows a manual move.
    """

    tournament_id = _tournament_id_for(tournament_repo, participant_id)
    with locks.exclusive(tournament_id):
        tournament = _load(tournament_repo, tournament_id)
        updated, moved = overrides.move_player(
            tournament, participant_id, target_table_id, target_seat
        )
        if moved:
            _save(tournament_repo, updated)
    return moved


def toggle_lock(
    participant_id: str,
    tournament_repo: TournamentRepository,
    locks: TournamentLocks = tournament_locks,
) -> bool:
    """Flip the player's seat lock and return the new state."""

    tournament_id = _tournament_id_for(tournament_repo, participant_id)
    with locks.exclusive(tournament_id):
        tournament = _load(tournament_repo, tournament_id)
        updated, locked = overrides.toggle_lock(tournament, participant_id)
        _save(tournament_repo, updated)
    return locked


def get_table_layout(
    tournament_id: str,
    tournament_repo: TournamentRepository,
    locks: TournamentLocks = tournament_locks,
) -> List[TableLayout]:
    with locks.shared(tournament_id):
        tournament = _load(tournament_repo, tournament_id)
    return layout.build_layout(tournament)


def get_balance_summary(
    tournament_id: str,
    tournament_repo: TournamentRepository,
    locks: TournamentLocks = tournament_locks,
) -> BalanceSummary:
    return layout.summarize_balance(get_table_layout(tournament_id, tournament_repo, locks))


def get_unassigned_participants(
    tournament_id: str,
    tournament_repo: TournamentRepository,
    locks: TournamentLocks = tournament_locks,
) -> List[Participant]:
    with locks.shared(tournament_id):
        tournament = _load(tournament_repo, tournament_id)
    return layout.unassigned_participants(tournament)


def eliminate_participant(
    participant_id: str,
    tournament_repo: TournamentRepository,
    rng: Optional[random.Random] = None,
    locks: TournamentLocks = tournament_locks,
) -> BalanceResult:
    """
    Knock a player out and rebalance in the same write.

    The eliminated player's seat pair is kept as it was for the record.
    """

    tournament_id = _tournament_id_for(tournament_repo, participant_id)
    with locks.exclusive(tournament_id):
        tournament = _load(tournament_repo, tournament_id)
        participant = _participant(tournament, participant_id)
        if participant.eliminated:
            return BalanceResult(message=f"{participant.name} is already eliminated.")

        knocked_out = tournament.with_participant(
            replace(participant, eliminated=True, locked=False)
        )
        updated, result = balancer.settle(knocked_out, _rng(rng))
        _save(tournament_repo, updated)

    logger.info("%s eliminated; %s", participant.name, result.message)
    return result


def undo_elimination(
    participant_id: str,
    tournament_repo: TournamentRepository,
    rng: Optional[random.Random] = None,
    locks: TournamentLocks = tournament_locks,
) -> BalanceResult:
    """
    Bring an eliminated player back.

    The player returns to their old seat when it is still free on an
    active table; otherwise they are seated like a late arrival.
    """

    tournament_id = _tournament_id_for(tournament_repo, participant_id)
    with locks.exclusive(tournament_id):
        tournament = _load(tournament_repo, tournament_id)
        participant = _participant(tournament, participant_id)
        if not participant.eliminated:
            return BalanceResult(message=f"{participant.name} is not eliminated.")

        restored = seating.restore_participant(tournament, participant_id)
        updated, result = balancer.settle(restored, _rng(rng))
        _save(tournament_repo, updated)

    logger.info("Elimination of %s undone; %s", participant.name, result.message)
    return result


def reseat_after_rebuy(
    participant_id: str,
    stack: int,
    tournament_repo: TournamentRepository,
    rng: Optional[random.Random] = None,
    locks: TournamentLocks = tournament_locks,
) -> Optional[SeatAssignment]:
    """
    Return a busted player to play with a new stack.

    The old seat is released and the player is placed like a late
    arrival, followed by a rebalance.
    """

    tournament_id = _tournament_id_for(tournament_repo, participant_id)
    with locks.exclusive(tournament_id):
        tournament = _load(tournament_repo, tournament_id)
        participant = _participant(tournament, participant_id)
        rebought = replace(
            participant,
            eliminated=False,
            locked=False,
            current_stack=stack,
        ).unseated()
        try:
            placed, _ = seating.assign_late_player(
                tournament.with_participant(rebought), participant_id
            )
        except NoCapacityError:
            logger.warning("No seat available for rebuy of %s", participant.name)
            return None

        updated, result = balancer.settle(placed, _rng(rng))
        _save(tournament_repo, updated)

    final = _assignment_for(updated, participant_id)
    logger.info(
        "%s rebought for %d and sits at table %s seat %s",
        participant.name,
        stack,
        final.table_number,
        final.seat_number,
    )
    return final
