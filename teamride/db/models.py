from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""


class PracticeRecord(Base):
    """Materialized practice.

    Tombstones (status "deleted") are kept so their date is never
    regenerated. Groups and published groups are stored as JSON.
    """

    __tablename__ = "practices"

    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    date: Mapped[str] = mapped_column(String, nullable=False, default="")
    time: Mapped[str] = mapped_column(String, nullable=False, default="")
    end_time: Mapped[str] = mapped_column(String, nullable=False, default="")
    meet_location: Mapped[str] = mapped_column(Text, nullable=False, default="")
    location_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    location_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    goals: Mapped[str] = mapped_column(Text, nullable=False, default="")
    available_rider_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    available_coach_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    groups: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    published_groups: Mapped[list | None] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="scheduled")
    cancellation_reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    rescheduled_from: Mapped[str | None] = mapped_column(String, nullable=True)
    status_before_delete: Mapped[str | None] = mapped_column(String, nullable=True)
    planning_started: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    attendance_initialized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_practices_date", "date"),
        Index("idx_practices_status", "status"),
    )


class RiderRecord(Base):
    __tablename__ = "riders"

    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    pace: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    climbing: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    descending: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    grade: Mapped[str] = mapped_column(String, nullable=False, default="")
    gender: Mapped[str] = mapped_column(String, nullable=False, default="")
    racing_group: Mapped[str] = mapped_column(String, nullable=False, default="")
    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class CoachRecord(Base):
    __tablename__ = "coaches"

    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    pace: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class AbsenceRecord(Base):
    """Scheduled absence over an inclusive ISO date range."""

    __tablename__ = "scheduled_absences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    person_type: Mapped[str] = mapped_column(String, nullable=False)
    person_id: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[str] = mapped_column(String, nullable=False)
    end_date: Mapped[str] = mapped_column(String, nullable=False)
    reason: Mapped[str] = mapped_column(String, nullable=False, default="other")

    __table_args__ = (Index("idx_absences_person", "person_type", "person_id"),)


class SeasonSettingsRecord(Base):
    """Single-row season settings, stored as the camelCase JSON document."""

    __tablename__ = "season_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
