"""
Participant store: pairing state for every user known to matchmaking.

Every mutation is a single statement committed immediately. Two-party
transitions are built from claim_waiting/release_claim so a concurrent search
can never pair the same waiting participant twice.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Set

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.constants.matchmaking import ParticipantStatus
from app.models.participant import Participant, RecentPartner


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ParticipantService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_participant(self, participant_id: str) -> Optional[Participant]:
        return (
            self.db.query(Participant).filter(Participant.id == participant_id).first()
        )

    def get_participants(
        self, status: Optional[ParticipantStatus] = None
    ) -> List[Participant]:
        q = self.db.query(Participant)
        if status is not None:
            q = q.filter(Participant.status == status.value)
        return q.order_by(Participant.joined_at.asc()).all()

    def mark_waiting(self, participant_id: str) -> Optional[Participant]:
        """Upsert the participant into the waiting pool with a fresh search time."""
        now = _now()
        values = {
            "status": ParticipantStatus.WAITING.value,
            "partner": None,
            "last_search_time": now,
            "last_activity": now,
        }
        result = self.db.execute(
            update(Participant)
            .where(Participant.id == participant_id)
            .values(**values)
        )
        if result.rowcount == 0:
            self.db.add(Participant(id=participant_id, joined_at=now, **values))
            try:
                self.db.commit()
            except IntegrityError:
                # Created concurrently; fall back to the update path.
                self.db.rollback()
                return self.mark_waiting(participant_id)
        else:
            self.db.commit()
        return self.get_participant(participant_id)

    def recent_partner_ids(self, participant_id: str, window_seconds: int) -> Set[str]:
        """Partners matched with participant_id within the exclusion window."""
        cutoff = _now() - timedelta(seconds=window_seconds)
        rows = self.db.execute(
            select(RecentPartner.partner_id).where(
                RecentPartner.participant_id == participant_id,
                RecentPartner.matched_at >= cutoff,
            )
        )
        return {row[0] for row in rows}

    def find_waiting_candidates(
        self,
        participant_id: str,
        exclude: Set[str],
        window_seconds: int,
        limit: int = 20,
    ) -> List[Participant]:
        """
        Waiting participants eligible to be paired with participant_id, oldest
        search first. Skips self, anyone in exclude, and anyone who has
        participant_id in their own unexpired recent partners.
        """
        cutoff = _now() - timedelta(seconds=window_seconds)
        excluded_by_them = select(RecentPartner.participant_id).where(
            RecentPartner.partner_id == participant_id,
            RecentPartner.matched_at >= cutoff,
        )
        q = self.db.query(Participant).filter(
            Participant.status == ParticipantStatus.WAITING.value,
            Participant.id != participant_id,
            Participant.id.not_in(excluded_by_them),
        )
        if exclude:
            q = q.filter(Participant.id.not_in(sorted(exclude)))
        return (
            q.order_by(Participant.last_search_time.asc(), Participant.joined_at.asc())
            .limit(limit)
            .all()
        )

    def claim_waiting(self, candidate_id: str, partner_id: str) -> bool:
        """Atomically move candidate from waiting to chatting with partner_id.

        Returns False when the candidate is no longer waiting (claimed by a
        concurrent search or stopped).
        """
        result = self.db.execute(
            update(Participant)
            .where(
                Participant.id == candidate_id,
                Participant.status == ParticipantStatus.WAITING.value,
            )
            .values(
                status=ParticipantStatus.CHATTING.value,
                partner=partner_id,
                last_activity=_now(),
            )
        )
        self.db.commit()
        return result.rowcount == 1

    def release_claim(self, candidate_id: str, partner_id: str) -> bool:
        """Undo claim_waiting: put candidate back in the waiting pool if still held by partner_id."""
        result = self.db.execute(
            update(Participant)
            .where(
                Participant.id == candidate_id,
                Participant.status == ParticipantStatus.CHATTING.value,
                Participant.partner == partner_id,
            )
            .values(status=ParticipantStatus.WAITING.value, partner=None)
        )
        self.db.commit()
        return result.rowcount == 1

    def reset_to_idle(
        self, participant_id: str, expected_partner: Optional[str] = None
    ) -> bool:
        """Set status idle and clear partner.

        With expected_partner, only resets when the row is still paired with
        that partner, so a participant who already moved on is left alone.
        """
        stmt = update(Participant).where(Participant.id == participant_id)
        if expected_partner is not None:
            stmt = stmt.where(Participant.partner == expected_partner)
        result = self.db.execute(
            stmt.values(
                status=ParticipantStatus.IDLE.value,
                partner=None,
                last_activity=_now(),
            )
        )
        self.db.commit()
        return result.rowcount == 1

    def add_recent_partner(self, participant_id: str, partner_id: str) -> None:
        self.db.add(RecentPartner(participant_id=participant_id, partner_id=partner_id))
        self.db.commit()

    def touch(self, participant_id: str) -> None:
        self.db.execute(
            update(Participant)
            .where(Participant.id == participant_id)
            .values(last_activity=_now())
        )
        self.db.commit()

    def purge_recent_partners(self, window_seconds: int) -> int:
        """Delete recent-partner entries older than the exclusion window."""
        cutoff = _now() - timedelta(seconds=window_seconds)
        result = self.db.execute(
            delete(RecentPartner).where(RecentPartner.matched_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount

    def expire_waiting(self, max_wait_minutes: int) -> List[str]:
        """Reset participants waiting longer than max_wait_minutes to idle. Returns their ids."""
        cutoff = _now() - timedelta(minutes=max_wait_minutes)
        stale_ids = [
            row[0]
            for row in self.db.execute(
                select(Participant.id).where(
                    Participant.status == ParticipantStatus.WAITING.value,
                    Participant.last_search_time < cutoff,
                )
            )
        ]
        expired: List[str] = []
        for participant_id in stale_ids:
            result = self.db.execute(
                update(Participant)
                .where(
                    Participant.id == participant_id,
                    Participant.status == ParticipantStatus.WAITING.value,
                )
                .values(status=ParticipantStatus.IDLE.value, partner=None)
            )
            if result.rowcount == 1:
                expired.append(participant_id)
        self.db.commit()
        return expired
