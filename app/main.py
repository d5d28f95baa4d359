"""
FastAPI application: Telegram webhook in, matchmaking and relay, background
queue drain and cleanup.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI

from app.commands.base_telegram import BaseTelegramCommand
from app.config import get_settings
from app.infra.logging_config import LoggingConfig, get_logger
from app.routers import system, webhooks
from app.tasks import build_scheduler

logger = get_logger()


def create_app(testing: bool = False) -> FastAPI:
    settings = get_settings()
    LoggingConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        adapter = BaseTelegramCommand.get_telegram_adapter()
        app.state.adapter = adapter
        scheduler = None
        if adapter is None:
            logger.warning("Telegram is disabled; background jobs not started")
        elif settings.scheduler_enabled and not testing:
            scheduler = build_scheduler(adapter, settings)
            scheduler.start()
        logger.info("%s started (%s)", settings.app_name, settings.environment)
        try:
            yield
        finally:
            if scheduler is not None:
                await scheduler.stop()
            logger.info("%s stopped", settings.app_name)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.include_router(webhooks.router)
    app.include_router(system.router)
    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.port)
