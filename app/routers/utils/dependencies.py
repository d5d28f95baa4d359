from typing import Optional

from fastapi import Request

from app.adapters.base import BasePlatformAdapter
from app.commands.base_telegram import BaseTelegramCommand


def get_platform_adapter(request: Request) -> Optional[BasePlatformAdapter]:
    """FastAPI dependency: the adapter created at startup, else one built from settings."""
    adapter = getattr(request.app.state, "adapter", None)
    if adapter is not None:
        return adapter
    return BaseTelegramCommand.get_telegram_adapter()
