"""Practice lifecycle state machine.

    scheduled --cancel--> cancelled --reinstate--> scheduled
    scheduled --reschedule--> rescheduled --restore--> scheduled
    scheduled | cancelled | rescheduled --delete--> deleted --restore--> prior state

A rescheduled practice's original date never holds an active practice: a
tombstone stays there until the practice is restored. Transitions are pure
and return the changeset to persist.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import StrEnum

from loguru import logger

from teamride.errors import StateConflictError, ValidationError
from teamride.practices.models import Practice, PracticeChanges, PracticeStatus, new_practice_id
from teamride.utils.dates import date_key


class TransitionKind(StrEnum):
    CANCEL = "cancel"
    REINSTATE = "reinstate"
    RESCHEDULE = "reschedule"
    DELETE = "delete"
    RESTORE = "restore"


@dataclass(frozen=True)
class Transition:
    """A requested lifecycle change.

    Attributes:
        kind: Transition to apply
        reason: Cancellation reason (cancel only)
        new_date: Target ISO date (reschedule only)
    """

    kind: TransitionKind
    reason: str = ""
    new_date: str | None = None

    @classmethod
    def cancel(cls, reason: str) -> Transition:
        return cls(TransitionKind.CANCEL, reason=reason)

    @classmethod
    def reinstate(cls) -> Transition:
        return cls(TransitionKind.REINSTATE)

    @classmethod
    def reschedule(cls, new_date: str) -> Transition:
        return cls(TransitionKind.RESCHEDULE, new_date=new_date)

    @classmethod
    def delete(cls) -> Transition:
        return cls(TransitionKind.DELETE)

    @classmethod
    def restore(cls) -> Transition:
        return cls(TransitionKind.RESTORE)


@dataclass
class TransitionOutcome:
    """Result of a transition.

    Attributes:
        practice: The transitioned practice as it now stands
        practices: Full practice list with the changes applied
        changes: Writes to persist
    """

    practice: Practice
    practices: list[Practice]
    changes: PracticeChanges = field(default_factory=PracticeChanges)


_ALLOWED_FROM: dict[TransitionKind, frozenset[PracticeStatus]] = {
    TransitionKind.CANCEL: frozenset({PracticeStatus.SCHEDULED}),
    TransitionKind.REINSTATE: frozenset({PracticeStatus.CANCELLED}),
    TransitionKind.RESCHEDULE: frozenset({PracticeStatus.SCHEDULED}),
    TransitionKind.DELETE: frozenset({PracticeStatus.SCHEDULED, PracticeStatus.CANCELLED, PracticeStatus.RESCHEDULED}),
    TransitionKind.RESTORE: frozenset({PracticeStatus.RESCHEDULED, PracticeStatus.DELETED}),
}


def _tombstone(practice: Practice) -> Practice:
    return replace(practice, status=PracticeStatus.DELETED, status_before_delete=practice.status)


def _blockers(practices: Sequence[Practice], key: str, exclude_id: str) -> list[Practice]:
    """Active practices that keep ``key`` occupied, other than ``exclude_id``."""
    return [
        p
        for p in practices
        if p.id != exclude_id
        and p.is_active
        and (p.date_key == key or (p.rescheduled_from is not None and date_key(p.rescheduled_from) == key))
    ]


def _apply(practices: Sequence[Practice], changes: PracticeChanges) -> list[Practice]:
    updated = {p.id: p for p in changes.updated}
    purged = set(changes.purged)
    result = [updated.get(p.id, p) for p in practices if p.id not in purged]
    result.extend(changes.created)
    return result


def _cancel(practice: Practice, transition: Transition, practices: Sequence[Practice]) -> PracticeChanges:
    reason = transition.reason.strip()
    if not reason:
        raise ValidationError("MISSING_REASON", ["A cancellation reason is required"])
    return PracticeChanges(updated=[replace(practice, status=PracticeStatus.CANCELLED, cancellation_reason=reason)])


def _reinstate(practice: Practice, transition: Transition, practices: Sequence[Practice]) -> PracticeChanges:
    return PracticeChanges(updated=[replace(practice, status=PracticeStatus.SCHEDULED, cancellation_reason="")])


def _reschedule(practice: Practice, transition: Transition, practices: Sequence[Practice]) -> PracticeChanges:
    new_key = date_key(transition.new_date)
    if new_key is None:
        raise ValidationError("INVALID_DATE", [f"Cannot reschedule to {transition.new_date!r}"])
    original = practice.date_key
    if original is None:
        raise ValidationError("INVALID_DATE", [f"Practice {practice.id} has no usable date"])
    if new_key == original:
        raise ValidationError("SAME_DATE", [f"Practice {practice.id} is already on {original}"])

    changes = PracticeChanges()
    occupants = [p for p in practices if p.id != practice.id and p.is_active and p.date_key == new_key]
    moved_here = [
        p for p in practices if p.is_active and p.rescheduled_from and date_key(p.rescheduled_from) == new_key
    ]
    if moved_here or any(p.status != PracticeStatus.SCHEDULED for p in occupants):
        raise StateConflictError("DATE_OCCUPIED", [f"{new_key} already holds a cancelled or moved practice"])

    if occupants:
        target = occupants[0]
        merged = replace(
            target,
            status=PracticeStatus.RESCHEDULED,
            rescheduled_from=original,
            goals=target.goals or practice.goals,
            groups=target.groups or practice.groups,
        )
        changes.updated.append(merged)
        changes.updated.append(_tombstone(practice))
        changes.updated.extend(_tombstone(p) for p in occupants[1:])
        logger.info(f"[LIFECYCLE] Merged practice {practice.id} ({original}) into {target.id} on {new_key}")
    else:
        changes.updated.append(
            replace(practice, date=new_key, status=PracticeStatus.RESCHEDULED, rescheduled_from=original)
        )

    others_on_original = [
        p for p in practices if p.id != practice.id and p.is_active and p.date_key == original
    ]
    changes.updated.extend(_tombstone(p) for p in others_on_original)

    has_tombstone = bool(occupants) or bool(others_on_original) or any(
        p.deleted and p.date_key == original for p in practices
    )
    if not has_tombstone:
        changes.created.append(
            Practice(
                id=new_practice_id(),
                date=original,
                time=practice.time,
                end_time=practice.end_time,
                meet_location=practice.meet_location,
                location_lat=practice.location_lat,
                location_lng=practice.location_lng,
                description=practice.description,
                status=PracticeStatus.DELETED,
            )
        )
    return changes


def _move_back(practice: Practice, practices: Sequence[Practice]) -> PracticeChanges:
    original = date_key(practice.rescheduled_from)
    if original is None:
        raise StateConflictError("INVALID_TRANSITION", [f"Practice {practice.id} has no usable original date"])
    if _blockers(practices, original, practice.id):
        raise StateConflictError("DATE_OCCUPIED", [f"{original} already holds an active practice"])

    restored = replace(
        practice,
        date=original,
        status=PracticeStatus.SCHEDULED,
        rescheduled_from=None,
        status_before_delete=None,
    )
    purged = [p.id for p in practices if p.id != practice.id and p.deleted and p.date_key == original]
    return PracticeChanges(updated=[restored], purged=purged)


def _restore(practice: Practice, transition: Transition, practices: Sequence[Practice]) -> PracticeChanges:
    if practice.effective_status == PracticeStatus.RESCHEDULED:
        return _move_back(practice, practices)

    key = practice.date_key
    if key is not None and _blockers(practices, key, practice.id):
        raise StateConflictError("DATE_OCCUPIED", [f"{key} already holds an active practice"])
    prior = practice.status_before_delete or PracticeStatus.SCHEDULED
    return PracticeChanges(updated=[replace(practice, status=prior, status_before_delete=None)])


def _delete(practice: Practice, transition: Transition, practices: Sequence[Practice]) -> PracticeChanges:
    return PracticeChanges(updated=[_tombstone(practice)])


_HANDLERS = {
    TransitionKind.CANCEL: _cancel,
    TransitionKind.REINSTATE: _reinstate,
    TransitionKind.RESCHEDULE: _reschedule,
    TransitionKind.DELETE: _delete,
    TransitionKind.RESTORE: _restore,
}


def apply_transition(practices: Sequence[Practice], practice_id: str, transition: Transition) -> TransitionOutcome:
    """Apply a lifecycle transition to one practice.

    Args:
        practices: All practice records, tombstones included
        practice_id: Practice to transition
        transition: Requested transition

    Returns:
        TransitionOutcome with the new practice list and the changeset

    Raises:
        StateConflictError: Unknown practice, transition not allowed from the
            current status, or target date occupied
        ValidationError: Missing reason or unusable date
    """
    practice = next((p for p in practices if p.id == practice_id), None)
    if practice is None:
        raise StateConflictError("NOT_FOUND", [f"Practice {practice_id} not found"])

    if practice.status not in _ALLOWED_FROM[transition.kind]:
        raise StateConflictError(
            "INVALID_TRANSITION",
            [f"Cannot {transition.kind} practice {practice_id} while {practice.status}"],
        )

    changes = _HANDLERS[transition.kind](practice, transition, practices)
    new_practices = _apply(practices, changes)
    current = next((p for p in new_practices if p.id == practice_id), practice)

    logger.info(
        f"[LIFECYCLE] {transition.kind} practice {practice_id}: {practice.status} -> {current.status} "
        f"(updated={len(changes.updated)} created={len(changes.created)} purged={len(changes.purged)})"
    )
    return TransitionOutcome(practice=current, practices=new_practices, changes=changes)
