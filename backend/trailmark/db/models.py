"""ORM models backing users, submissions, teams and notifications."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from .base import Base, TimestampMixin

JSONType = JSON


team_memberships = Table(
    "team_memberships",
    Base.metadata,
    Column("team_id", String(36), ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class UserModel(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username: Mapped[str | None] = mapped_column(String(128), nullable=True, unique=True)
    github_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    key: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, default=lambda: uuid.uuid4().hex
    )
    current: Mapped[dict[str, Optional[str]]] = mapped_column(JSONType, default=dict, nullable=False)
    completed: Mapped[dict[str, list[str]]] = mapped_column(JSONType, default=dict, nullable=False)

    submissions: Mapped[list["SubmissionModel"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", order_by="SubmissionModel.id"
    )
    notifications: Mapped[list["NotificationModel"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    teams: Mapped[list["TeamModel"]] = relationship(
        secondary=team_memberships, back_populates="members"
    )


class TeamModel(TimestampMixin, Base):
    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    slug: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    creator_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    creator: Mapped[UserModel] = relationship(foreign_keys=[creator_id])
    members: Mapped[list[UserModel]] = relationship(
        secondary=team_memberships, back_populates="teams"
    )


class SubmissionModel(Base):
    __tablename__ = "submissions"
    __table_args__ = (
        Index("ix_submissions_user_exercise", "user_id", "track", "slug"),
        Index("ix_submissions_state", "state"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True, default=lambda: uuid.uuid4().hex
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    track: Mapped[str] = mapped_column(String(64), nullable=False)
    slug: Mapped[str] = mapped_column(String(128), nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    state: Mapped[str] = mapped_column(String(16), default="pending", nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    user: Mapped[UserModel] = relationship(back_populates="submissions")
    comments: Mapped[list["CommentModel"]] = relationship(
        back_populates="submission", cascade="all, delete-orphan"
    )
    notifications: Mapped[list["NotificationModel"]] = relationship(
        back_populates="submission", cascade="all, delete-orphan"
    )


class CommentModel(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    submission: Mapped[SubmissionModel] = relationship(back_populates="comments")


class NotificationModel(Base):
    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user", "user_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    submission_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=True
    )
    regarding: Mapped[str] = mapped_column(String(32), default="code", nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    user: Mapped[UserModel] = relationship(back_populates="notifications")
    submission: Mapped[SubmissionModel | None] = relationship(back_populates="notifications")


__all__ = [
    "CommentModel",
    "NotificationModel",
    "SubmissionModel",
    "TeamModel",
    "UserModel",
    "team_memberships",
]
