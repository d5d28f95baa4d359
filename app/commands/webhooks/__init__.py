"""Webhook commands for inbound platform updates."""

from app.commands.webhooks.telegram_command import TelegramWebhookCommand

__all__ = ["TelegramWebhookCommand"]
