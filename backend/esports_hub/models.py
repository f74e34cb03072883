from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum
from typing import Optional

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql.sqltypes import BigInteger, Date, DateTime, Integer, String, Text


class Base(DeclarativeBase):
    pass


class UserRole(StrEnum):
    STUDENT = "student"
    TEACHER = "teacher"


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=UserRole.STUDENT,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)


class Team(Base):
    __tablename__ = "teams"
    __table_args__ = (
        UniqueConstraint("name", name="uq_teams_name"),
        Index("idx_teams_creator", "creator_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    creator_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    members: Mapped[list["TeamMember"]] = relationship(
        back_populates="team", cascade="all, delete-orphan", passive_deletes=True
    )
    lab_bookings: Mapped[list["LabBooking"]] = relationship(
        back_populates="team", cascade="all, delete-orphan", passive_deletes=True
    )


class TeamMember(Base):
    __tablename__ = "team_members"
    __table_args__ = (Index("idx_team_members_team", "team_id"),)

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True)
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    team: Mapped["Team"] = relationship(back_populates="members")


class ComputerLab(Base):
    __tablename__ = "computer_labs"
    __table_args__ = (
        UniqueConstraint("name", name="uq_computer_labs_name"),
        CheckConstraint("computer_count >= 0", name="chk_labs_computer_count"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    computer_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    bookings: Mapped[list["LabBooking"]] = relationship(back_populates="lab")


class LabBooking(Base):
    __tablename__ = "lab_bookings"
    __table_args__ = (
        # One booking per lab per day; racing inserts lose on this constraint.
        UniqueConstraint("lab_id", "booking_date", name="uq_lab_bookings_lab_date"),
        Index("idx_lab_bookings_team", "team_id"),
        Index("idx_lab_bookings_user", "booked_by_user_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    lab_id: Mapped[int] = mapped_column(ForeignKey("computer_labs.id", ondelete="RESTRICT"), nullable=False)
    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    booked_by_user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    lab: Mapped["ComputerLab"] = relationship(back_populates="bookings")
    team: Mapped["Team"] = relationship(back_populates="lab_bookings")
    booked_by: Mapped["User"] = relationship()


class Tournament(Base):
    __tablename__ = "tournaments"
    __table_args__ = (
        UniqueConstraint("name", name="uq_tournaments_name"),
        Index("idx_tournaments_game", "game_title"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    event_date: Mapped[date] = mapped_column("date", Date, nullable=False, index=True)
    game_title: Mapped[str] = mapped_column(String(255), nullable=False)
    genre: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    prize_fund: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    creator_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    watch_parties: Mapped[list["WatchParty"]] = relationship(
        back_populates="tournament", cascade="all, delete-orphan", passive_deletes=True
    )


class WatchParty(Base):
    __tablename__ = "watch_parties"
    __table_args__ = (
        CheckConstraint("max_attendees >= 1", name="chk_watch_parties_max_attendees"),
        Index("idx_watch_parties_tournament", "tournament_id"),
        Index("idx_watch_parties_creator", "creator_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    tournament_id: Mapped[int] = mapped_column(ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False)
    creator_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    party_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False, default="TBD")
    max_attendees: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    tournament: Mapped["Tournament"] = relationship(back_populates="watch_parties")
    attendees: Mapped[list["WatchPartyAttendee"]] = relationship(
        back_populates="watch_party", cascade="all, delete-orphan", passive_deletes=True
    )


class WatchPartyAttendee(Base):
    __tablename__ = "watch_party_attendees"
    __table_args__ = (Index("idx_attendees_party", "watch_party_id"),)

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    watch_party_id: Mapped[int] = mapped_column(
        ForeignKey("watch_parties.id", ondelete="CASCADE"), primary_key=True
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    watch_party: Mapped["WatchParty"] = relationship(back_populates="attendees")
