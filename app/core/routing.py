from __future__ import annotations

import logging
from enum import StrEnum
from typing import Optional

from sqlalchemy.orm import Session

from app.adapters.base import BasePlatformAdapter
from app.config import Settings, get_settings
from app.constants.notices import Notices
from app.core.matchmaker import Matchmaker
from app.core.notifier import Notifier
from app.core.relay import RelayEngine
from app.schemas.messages import InboundMessage

logger = logging.getLogger(__name__)

PROFILE_PICTURE_COMMAND = "sendpp"
MENU_COMMANDS = ("menu", "help", "start")


class RouteAction(StrEnum):
    COMMAND = "command"
    MENU = "menu"
    UNKNOWN_COMMAND = "unknown_command"
    RELAYED = "relayed"
    NOT_RELAYED = "not_relayed"


def parse_command(body: str, prefixes: str) -> Optional[str]:
    """Return the lowercased command word if body starts with one of prefixes."""
    body = body.strip()
    if not body or body[0] not in prefixes:
        return None
    words = body[1:].strip().split()
    if not words:
        return None
    # Telegram appends @botname to commands in group chats
    return words[0].split("@", 1)[0].lower()


class Router:
    """Dispatch an inbound message to a command handler or to the relay."""

    def __init__(
        self,
        db: Session,
        adapter: BasePlatformAdapter,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.matchmaker = Matchmaker(db, adapter, self.settings)
        self.relay = RelayEngine(db, adapter)
        self.notifier = Notifier(adapter)

    async def route(self, inbound: InboundMessage) -> RouteAction:
        sender_id = inbound.external_user_id
        command = parse_command(inbound.body, self.settings.command_prefixes)

        if command is None:
            if await self.relay.relay(sender_id, inbound):
                return RouteAction.RELAYED
            if self.relay.active_partner(sender_id) is None:
                await self.notifier.notify(sender_id, Notices.NOT_IN_CHAT_HINT)
            return RouteAction.NOT_RELAYED

        logger.info("Command %s from %s", command, sender_id)
        if command == "search":
            await self.matchmaker.search(sender_id)
        elif command == "next":
            await self.matchmaker.next(sender_id)
        elif command == "stop":
            await self.matchmaker.stop(sender_id)
        elif command == PROFILE_PICTURE_COMMAND:
            await self.relay.send_profile_picture(sender_id)
        elif command in MENU_COMMANDS:
            await self.notifier.notify(sender_id, Notices.MENU)
            return RouteAction.MENU
        else:
            await self.notifier.notify(sender_id, Notices.UNKNOWN_COMMAND)
            return RouteAction.UNKNOWN_COMMAND
        return RouteAction.COMMAND
