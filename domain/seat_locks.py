from __future__ import annotations

from dataclasses import replace

from .models import Participant


def is_locked(participant: Participant) -> bool:
    return participant.locked and not participant.eliminated


def is_movable(participant: Participant) -> bool:
    """
    Whether automatic placement may relocate this participant.

    Every allocator and balancer code path asks this one question instead
    of checking the lock flag on its own.
    """

    return not participant.locked and not participant.eliminated


def with_lock_toggled(participant: Participant) -> Participant:
    return replace(participant, locked=not participant.locked)


def unlocked(participant: Participant) -> Participant:
    """Clear the lock when the pinned seat stops existing (table closed)."""

    if not participant.locked:
        return participant
    return replace(participant, locked=False)
