"""
Matchmaker: search / next / stop transitions over the participant store.

State machine::

    idle --search--> waiting --(partner found)--> chatting
    waiting --stop--> idle
    chatting --next--> caller re-searches, old partner idle
    chatting --stop--> idle (both sides)

Invalid requests (search while chatting, next while not chatting, ...) are
answered with a notice and reported through MatchOutcome; they never raise.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Optional

from sqlalchemy.orm import Session

from app.adapters.base import BasePlatformAdapter
from app.config import Settings, get_settings
from app.constants.matchmaking import ParticipantStatus
from app.constants.notices import Notices
from app.core.notifier import Notifier
from app.services.participant_service import ParticipantService

logger = logging.getLogger(__name__)

CANDIDATE_BATCH_SIZE = 20


class MatchOutcome(StrEnum):
    MATCHED = "matched"
    WAITING = "waiting"
    ALREADY_CHATTING = "already_chatting"
    ALREADY_WAITING = "already_waiting"
    NOT_CHATTING = "not_chatting"
    STOPPED = "stopped"
    NOT_FOUND = "not_found"


class Matchmaker:
    def __init__(
        self,
        db: Session,
        adapter: BasePlatformAdapter,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.participants = ParticipantService(db)
        self.notifier = Notifier(adapter)

    @property
    def exclusion_window(self) -> int:
        return self.settings.recent_partner_window_seconds

    async def search(self, participant_id: str) -> MatchOutcome:
        """Put the participant in the waiting pool and try to pair them immediately."""
        participant = self.participants.get_participant(participant_id)
        if participant is not None:
            if participant.status == ParticipantStatus.CHATTING and participant.partner:
                await self.notifier.notify(participant_id, Notices.ALREADY_CHATTING)
                return MatchOutcome.ALREADY_CHATTING
            if participant.status == ParticipantStatus.WAITING:
                await self.notifier.notify(participant_id, Notices.ALREADY_SEARCHING)
                return MatchOutcome.ALREADY_WAITING

        self.participants.mark_waiting(participant_id)
        partner_id = self._pair(participant_id)

        if partner_id is not None:
            logger.info("Paired %s with %s", participant_id, partner_id)
            await self.notifier.notify(participant_id, Notices.PARTNER_FOUND)
            await self.notifier.notify(partner_id, Notices.PARTNER_FOUND)
            return MatchOutcome.MATCHED

        refreshed = self.participants.get_participant(participant_id)
        if refreshed is not None and refreshed.status == ParticipantStatus.CHATTING:
            # A concurrent search claimed us and has notified both sides.
            return MatchOutcome.MATCHED

        await self.notifier.notify(participant_id, Notices.SEARCHING)
        return MatchOutcome.WAITING

    def _pair(self, participant_id: str) -> Optional[str]:
        """
        Claim the oldest eligible waiting candidate, then claim ourselves.

        Each claim is a conditional update on status == 'waiting'. A lost
        candidate claim moves on to the next candidate; a lost self claim
        (someone paired us meanwhile) hands the candidate back to the pool.
        """
        excluded = self.participants.recent_partner_ids(
            participant_id, self.exclusion_window
        )
        attempted: set[str] = set()
        while True:
            candidates = self.participants.find_waiting_candidates(
                participant_id,
                exclude=excluded | attempted,
                window_seconds=self.exclusion_window,
                limit=CANDIDATE_BATCH_SIZE,
            )
            if not candidates:
                return None
            for candidate in candidates:
                candidate_id = candidate.id
                attempted.add(candidate_id)
                if not self.participants.claim_waiting(candidate_id, participant_id):
                    logger.debug("Candidate %s was claimed concurrently", candidate_id)
                    continue
                if not self.participants.claim_waiting(participant_id, candidate_id):
                    self.participants.release_claim(candidate_id, participant_id)
                    return None
                self.participants.add_recent_partner(participant_id, candidate_id)
                self.participants.add_recent_partner(candidate_id, participant_id)
                return candidate_id

    async def next(self, participant_id: str) -> MatchOutcome:
        """Leave the current partner and search again."""
        participant = self.participants.get_participant(participant_id)
        if (
            participant is None
            or participant.status != ParticipantStatus.CHATTING
            or not participant.partner
        ):
            await self.notifier.notify(participant_id, Notices.NOT_CHATTING)
            return MatchOutcome.NOT_CHATTING

        old_partner = participant.partner
        await self.notifier.notify(old_partner, Notices.PARTNER_SKIPPED)
        self.participants.reset_to_idle(old_partner, expected_partner=participant_id)
        self.participants.reset_to_idle(participant_id)
        logger.info("%s left %s to search again", participant_id, old_partner)
        return await self.search(participant_id)

    async def stop(self, participant_id: str) -> MatchOutcome:
        """End the current search or chat. Both sides end up idle."""
        participant = self.participants.get_participant(participant_id)
        if participant is None:
            await self.notifier.notify(participant_id, Notices.NO_SESSION)
            return MatchOutcome.NOT_FOUND

        partner_id = participant.partner
        if partner_id:
            await self.notifier.notify(partner_id, Notices.PARTNER_ENDED)
            self.participants.reset_to_idle(partner_id, expected_partner=participant_id)

        self.participants.reset_to_idle(participant_id)
        await self.notifier.notify(participant_id, Notices.CHAT_ENDED)
        logger.info("%s stopped (partner=%s)", participant_id, partner_id)
        return MatchOutcome.STOPPED
