"""Request and response schemas for the practices API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from teamride.groups.compliance import GroupCompliance
from teamride.groups.models import GroupSettings, InfeasibleConfiguration
from teamride.lifecycle.machine import TransitionKind
from teamride.practices.models import Group, Practice


class CoachRolesSchema(BaseModel):
    leader: str | None = None
    sweep: str | None = None
    roam: str | None = None
    extra_roam: list[str] = Field(default_factory=list)


class GroupSchema(BaseModel):
    id: str
    label: str
    rider_ids: list[str]
    coaches: CoachRolesSchema
    route_id: str | None = None
    fitness_tag: int | None = None

    @classmethod
    def from_group(cls, group: Group) -> GroupSchema:
        return cls(
            id=group.id,
            label=group.label,
            rider_ids=list(group.rider_ids),
            coaches=CoachRolesSchema(
                leader=group.coaches.leader,
                sweep=group.coaches.sweep,
                roam=group.coaches.roam,
                extra_roam=list(group.coaches.extra_roam),
            ),
            route_id=group.route_id,
            fitness_tag=group.fitness_tag,
        )


class PracticeSchema(BaseModel):
    """A practice as returned by the API."""

    id: str
    date: str
    time: str
    end_time: str
    meet_location: str
    location_lat: float | None = None
    location_lng: float | None = None
    description: str
    goals: str
    status: str
    cancellation_reason: str = ""
    rescheduled_from: str | None = None
    available_rider_ids: list[str]
    available_coach_ids: list[str]
    groups: list[GroupSchema]
    planning_started: bool

    @classmethod
    def from_practice(cls, practice: Practice) -> PracticeSchema:
        return cls(
            id=practice.id,
            date=practice.date,
            time=practice.time,
            end_time=practice.end_time,
            meet_location=practice.meet_location,
            location_lat=practice.location_lat,
            location_lng=practice.location_lng,
            description=practice.description,
            goals=practice.goals,
            status=str(practice.status),
            cancellation_reason=practice.cancellation_reason,
            rescheduled_from=practice.rescheduled_from,
            available_rider_ids=list(practice.available_rider_ids),
            available_coach_ids=list(practice.available_coach_ids),
            groups=[GroupSchema.from_group(group) for group in practice.groups],
            planning_started=practice.planning_started,
        )


class MaterializeResponse(BaseModel):
    created: list[str] = Field(..., description="Dates of newly created practices")
    practice_count: int = Field(..., description="Active practices after the run")
    unsaved: list[str] = Field(default_factory=list, description="Ids of practices whose write failed")


class NextPracticeResponse(BaseModel):
    practice: PracticeSchema | None = None


class AutoAssignRequest(BaseModel):
    target_group_count: int | None = Field(default=None, ge=1, description="Skip group count selection")
    settings: GroupSettings | None = Field(default=None, description="Overrides the configured defaults")


class GroupCountCandidateSchema(BaseModel):
    group_count: int
    min_size: int
    max_size: int
    violations: list[str]


class InfeasibleSchema(BaseModel):
    rider_count: int
    coach_count: int
    candidates: list[GroupCountCandidateSchema]

    @classmethod
    def from_result(cls, infeasible: InfeasibleConfiguration) -> InfeasibleSchema:
        return cls(
            rider_count=infeasible.rider_count,
            coach_count=infeasible.coach_count,
            candidates=[
                GroupCountCandidateSchema(
                    group_count=c.group_count,
                    min_size=c.min_size,
                    max_size=c.max_size,
                    violations=list(c.violations),
                )
                for c in infeasible.candidates
            ],
        )


class GroupsResponse(BaseModel):
    practice_id: str
    groups: list[GroupSchema] = Field(default_factory=list)
    infeasible: InfeasibleSchema | None = None


class GroupComplianceSchema(BaseModel):
    group_id: str
    label: str
    compliant: bool
    reasons: list[str]

    @classmethod
    def from_result(cls, result: GroupCompliance) -> GroupComplianceSchema:
        return cls(group_id=result.group_id, label=result.label, compliant=result.compliant, reasons=list(result.reasons))


class ComplianceResponse(BaseModel):
    practice_id: str
    compliant: bool
    groups: list[GroupComplianceSchema]


class TransitionRequest(BaseModel):
    kind: TransitionKind
    reason: str = ""
    new_date: str | None = None


class TransitionResponse(BaseModel):
    practice: PracticeSchema
    created_ids: list[str] = Field(default_factory=list)
    purged_ids: list[str] = Field(default_factory=list)
