"""Report dispatch (Telegram)."""

from .telegram import TELEGRAM_API_BASE_URL, TelegramReporter, format_report

__all__ = ["TELEGRAM_API_BASE_URL", "TelegramReporter", "format_report"]
