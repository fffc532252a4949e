"""Practice, group and changeset records.

A practice's exceptions (cancel, reschedule, delete) are carried by an
explicit ``status``; ``deleted`` and ``cancelled`` are derived from it.
A deleted practice is a tombstone: it stays in the record set so its date
is never regenerated.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum

from teamride.utils.dates import date_key


class PracticeStatus(StrEnum):
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"
    DELETED = "deleted"


@dataclass
class CoachRoles:
    """Coach role slots of a group.

    Attributes:
        leader: Ride leader (must meet the minimum license level)
        sweep: Coach riding at the back
        roam: Coach moving through the group
        extra_roam: Any further coaches
    """

    leader: str | None = None
    sweep: str | None = None
    roam: str | None = None
    extra_roam: list[str] = field(default_factory=list)

    def all_ids(self) -> list[str]:
        """Assigned coach ids in role order (leader, sweep, roam, extras)."""
        ids = [coach_id for coach_id in (self.leader, self.sweep, self.roam) if coach_id]
        ids.extend(coach_id for coach_id in self.extra_roam if coach_id)
        return ids

    def count(self) -> int:
        return len(self.all_ids())

    def role_of(self, coach_id: str) -> str | None:
        if self.leader == coach_id:
            return "leader"
        if self.sweep == coach_id:
            return "sweep"
        if self.roam == coach_id:
            return "roam"
        if coach_id in self.extra_roam:
            return "extraRoam"
        return None


@dataclass
class Group:
    """A supervised ride group within one practice.

    Attributes:
        id: Group identifier (unique within the practice)
        label: Display label ("Group 1")
        rider_ids: Ordered riders, fastest first
        coaches: Coach role slots
        route_id: Optional route assignment
        fitness_tag: Display hint, rounded average rider pace
    """

    id: str
    label: str
    rider_ids: list[str] = field(default_factory=list)
    coaches: CoachRoles = field(default_factory=CoachRoles)
    route_id: str | None = None
    fitness_tag: int | None = None


def new_group_id() -> str:
    return f"group-{uuid.uuid4().hex[:12]}"


@dataclass
class Practice:
    """A materialized practice on one calendar date.

    Attributes:
        id: Practice identifier
        date: ISO practice date (may be empty or invalid for stale records)
        time: Start time (HH:MM)
        end_time: End time (HH:MM)
        meet_location: Meeting place text
        location_lat: Optional latitude
        location_lng: Optional longitude
        description: Practice description copied from its rule
        goals: Coach-written goals for the practice
        available_rider_ids: Riders marked attending
        available_coach_ids: Coaches marked attending
        groups: Ordered ride groups
        status: Lifecycle status
        cancellation_reason: Why a cancelled practice was called off
        rescheduled_from: Original date of a moved practice
        status_before_delete: Status to return to when a tombstone is restored
        published_groups: Groups as last published to riders, None if never
        planning_started: Coach has started planning groups
        attendance_initialized: Attendance was seeded from the roster
    """

    id: str
    date: str
    time: str = ""
    end_time: str = ""
    meet_location: str = ""
    location_lat: float | None = None
    location_lng: float | None = None
    description: str = ""
    goals: str = ""
    available_rider_ids: list[str] = field(default_factory=list)
    available_coach_ids: list[str] = field(default_factory=list)
    groups: list[Group] = field(default_factory=list)
    status: PracticeStatus = PracticeStatus.SCHEDULED
    cancellation_reason: str = ""
    rescheduled_from: str | None = None
    status_before_delete: PracticeStatus | None = None
    published_groups: list[Group] | None = None
    planning_started: bool = False
    attendance_initialized: bool = False

    def __post_init__(self) -> None:
        self.status = PracticeStatus(self.status)
        if self.status_before_delete is not None:
            self.status_before_delete = PracticeStatus(self.status_before_delete)
        if not self.rescheduled_from:
            self.rescheduled_from = None

        if self.status_before_delete is not None and self.status != PracticeStatus.DELETED:
            raise ValueError(f"Practice {self.id}: status_before_delete is only valid on deleted practices")
        if self.status_before_delete == PracticeStatus.DELETED:
            raise ValueError(f"Practice {self.id}: status_before_delete cannot be 'deleted'")

        effective = self.effective_status
        if effective == PracticeStatus.RESCHEDULED and self.rescheduled_from is None:
            raise ValueError(f"Practice {self.id}: rescheduled practice needs rescheduled_from")
        if self.rescheduled_from is not None:
            if effective != PracticeStatus.RESCHEDULED:
                raise ValueError(f"Practice {self.id}: rescheduled_from set on a {effective} practice")
            if date_key(self.rescheduled_from) is not None and date_key(self.rescheduled_from) == self.date_key:
                raise ValueError(f"Practice {self.id}: rescheduled_from equals the practice date")
        if self.cancellation_reason and effective != PracticeStatus.CANCELLED:
            raise ValueError(f"Practice {self.id}: cancellation_reason set on a {effective} practice")

    @property
    def effective_status(self) -> PracticeStatus:
        """Status the practice had before deletion, or its current one."""
        if self.status == PracticeStatus.DELETED:
            return self.status_before_delete or PracticeStatus.SCHEDULED
        return self.status

    @property
    def deleted(self) -> bool:
        return self.status == PracticeStatus.DELETED

    @property
    def cancelled(self) -> bool:
        return self.status == PracticeStatus.CANCELLED

    @property
    def is_active(self) -> bool:
        return not self.deleted

    @property
    def date_key(self) -> str | None:
        return date_key(self.date)


def new_practice_id() -> str:
    return str(uuid.uuid4())


def active_on(practices: list[Practice], key: str) -> list[Practice]:
    """Active practices whose date key equals ``key``."""
    return [practice for practice in practices if practice.is_active and practice.date_key == key]


def tombstones_on(practices: list[Practice], key: str) -> list[Practice]:
    return [practice for practice in practices if practice.deleted and practice.date_key == key]


@dataclass
class PracticeChanges:
    """Writes produced by one core operation.

    Attributes:
        updated: Existing practices with new field values
        created: New practices (tombstones included)
        purged: Ids of records to remove outright
    """

    updated: list[Practice] = field(default_factory=list)
    created: list[Practice] = field(default_factory=list)
    purged: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.updated or self.created or self.purged)

    def touched_ids(self) -> set[str]:
        ids = {practice.id for practice in self.updated}
        ids.update(practice.id for practice in self.created)
        ids.update(self.purged)
        return ids
