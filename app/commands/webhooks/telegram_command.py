"""
Command to handle Telegram webhook updates.

Receives the webhook body, validates the secret, parses the update and hands
it to the Router: prefixed text goes to the matchmaking commands, anything
else is relayed to the sender's partner.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from app.adapters.base import BasePlatformAdapter
from app.commands.base_telegram import BaseTelegramCommand
from app.config import get_settings
from app.core.routing import Router
from app.schemas.telegram import TelegramWebhookUpdate


class TelegramWebhookCommand(BaseTelegramCommand):
    """
    Command to handle Telegram webhook updates.
    Validates X-Telegram-Bot-Api-Secret-Token, parses the update and routes it.
    """

    def __init__(
        self, db: Session, adapter: Optional[BasePlatformAdapter] = None
    ) -> None:
        self.db = db
        self.settings = get_settings()
        self._adapter = adapter if adapter is not None else self.get_telegram_adapter()
        self.logger = logging.getLogger(__name__)

    async def execute(
        self, request: Request, body: TelegramWebhookUpdate
    ) -> dict[str, str]:
        """
        Execute the Telegram webhook: validate secret, parse body, route.

        Args:
            request: The incoming webhook request (headers for secret validation).
            body: Validated Telegram webhook update payload.

        Returns:
            dict: {"status": "ok"} when routed, {"status": "ignored"} for
                updates without a message (edits, callbacks, ...).

        Raises:
            HTTPException: 503 if Telegram not configured, 403 on invalid secret,
                400 on invalid Telegram update.
        """
        if self._adapter is None:
            raise HTTPException(
                status_code=503,
                detail="Telegram integration is not configured or disabled",
            )
        headers = dict(request.headers) if request.headers else {}
        if not self._adapter.verify_webhook(
            self.settings.telegram_webhook_secret, headers
        ):
            raise HTTPException(status_code=403, detail="Invalid webhook secret")
        if body.message is None:
            return {"status": "ignored"}
        try:
            inbound = self._adapter.parse_webhook(
                body.model_dump(by_alias=True, exclude_none=True)
            )
        except (ValueError, KeyError, TypeError) as e:
            self.logger.warning("Telegram webhook parse error: %s", e)
            raise HTTPException(
                status_code=400, detail="Invalid Telegram update"
            ) from e

        action = await Router(self.db, self._adapter, self.settings).route(inbound)
        self.logger.info(
            "Telegram update %s from %s: %s",
            body.update_id,
            inbound.external_user_id,
            action,
        )
        return {"status": "ok"}
