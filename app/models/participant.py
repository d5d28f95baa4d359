"""
Participant model: one row per platform address that ever used matchmaking.

Rows are never deleted; only status/partner are reset. recent_partners holds
one row per match so a participant is not paired with the same person again
inside the exclusion window.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.constants.matchmaking import ParticipantStatus
from app.db import Base
from app.models.mixins import TimestampMixin, utcnow


class Participant(Base, TimestampMixin):
    """Pairing state of one user. partner is non-null iff status == 'chatting'."""

    __tablename__ = "participants"

    __table_args__ = (
        Index("ix_participants_status_last_search", "status", "last_search_time"),
    )

    id = Column(String(255), primary_key=True)  # platform address (chat id)
    status = Column(String(16), nullable=False, default=ParticipantStatus.IDLE.value)
    partner = Column(String(255), nullable=True)
    joined_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_search_time = Column(DateTime(timezone=True), nullable=True)
    last_activity = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    recent_partners = relationship(
        "RecentPartner",
        back_populates="participant",
        cascade="all, delete-orphan",
        order_by="RecentPartner.matched_at",
    )


class RecentPartner(Base):
    """A partner matched with participant_id at matched_at."""

    __tablename__ = "recent_partners"

    __table_args__ = (
        Index("ix_recent_partners_participant_matched", "participant_id", "matched_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    participant_id = Column(
        String(255),
        ForeignKey("participants.id", ondelete="CASCADE"),
        nullable=False,
    )
    partner_id = Column(String(255), nullable=False)
    matched_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    participant = relationship("Participant", back_populates="recent_partners")
