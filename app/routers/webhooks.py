"""
Webhook routes for inbound chat platform updates.

Platforms POST raw updates here; we parse, route to matchmaking or relay,
and return 200. A store failure surfaces as 500 so the platform redelivers.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.adapters.base import BasePlatformAdapter
from app.commands.webhooks import TelegramWebhookCommand
from app.db import get_db
from app.routers.utils.dependencies import get_platform_adapter
from app.schemas.telegram import TelegramWebhookUpdate

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/telegram")
async def telegram_webhook(
    request: Request,
    body: TelegramWebhookUpdate,
    db: Session = Depends(get_db),
    adapter: Optional[BasePlatformAdapter] = Depends(get_platform_adapter),
) -> dict[str, str]:
    """
    Receive Telegram webhook updates.
    Validate X-Telegram-Bot-Api-Secret-Token if TELEGRAM_WEBHOOK_SECRET is set.
    """
    command = TelegramWebhookCommand(db, adapter)
    return await command.execute(request, body)
