"""Telegram report dispatcher.

One Markdown message per cycle summarising all three assets. Sending is
best-effort: every failure ends up as `False` plus a log line, never an
exception.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

import requests

from ..bias.types import BiasOutput
from ..market.types import Asset, Bias, TradeHorizon
from ..util.jsonlog import log_event, utc_now

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE_URL = "https://api.telegram.org"
SEPARATOR = "───────────────────"
MAX_KEY_DRIVERS = 3

_BIAS_EMOJI = {
    Bias.BULLISH: "📈",
    Bias.BEARISH: "📉",
    Bias.NEUTRAL: "⚖️",
}

_HORIZON_LABELS = (
    ("┣", "Scalp", TradeHorizon.SCALPING),
    ("┣", "Intraday", TradeHorizon.INTRADAY),
    ("┗", "Swing", TradeHorizon.SWING),
)


def _pct(confidence: float) -> str:
    return f"{confidence * 100:.0f}%"


def format_report(biases: Mapping[Asset, BiasOutput], now: Optional[datetime] = None) -> str:
    now = now or utc_now()
    stamp = now.strftime("%m/%d/%Y, %H:%M:%S") + " UTC"

    lines = ["🚨 *INSTITUTIONAL COMMODITY INTELLIGENCE*", f"🕒 _{stamp}_", ""]

    for asset in Asset:
        data = biases.get(asset)
        if data is None:
            continue

        intraday = data.horizon(TradeHorizon.INTRADAY)
        lines.append(f"{_BIAS_EMOJI[intraday.bias]} *{asset.value} BIAS SUMMARY*")
        for glyph, label, horizon in _HORIZON_LABELS:
            h = data.horizon(horizon)
            lines.append(f"{glyph} *{label}:* {h.bias.value} ({_pct(h.confidence)})")
        lines.append("")
        lines.append(f"📝 *Brief:* {intraday.driver}")
        lines.append("")
        lines.append("📍 *Key Drivers:*")
        lines.extend(f"• {kd}" for kd in data.key_drivers[:MAX_KEY_DRIVERS])
        lines.append("")
        lines.append(SEPARATOR)
        lines.append("")

    lines.append("🛡 *Invalidation:* Bias invalidated if drivers flip.")
    return "\n".join(lines)


@dataclass
class TelegramReporter:

    bot_token: Optional[str] = None
    chat_id: Optional[str] = None
    base_url: str = TELEGRAM_API_BASE_URL
    timeout_seconds: float = field(default_factory=lambda: float(os.getenv("TELEGRAM_TIMEOUT_SECONDS", "15")))
    session: Optional[Any] = None

    def __post_init__(self) -> None:
        if self.bot_token is None:
            self.bot_token = os.getenv("TELEGRAM_BOT_TOKEN")
        if self.chat_id is None:
            self.chat_id = os.getenv("TELEGRAM_CHAT_ID")
        if self.session is None:
            self.session = requests.Session()

    def is_configured(self) -> bool:
        return bool(self.bot_token) and bool(self.chat_id)

    def send_report(self, biases: Mapping[Asset, BiasOutput], now: Optional[datetime] = None) -> bool:
        now = now or utc_now()
        if not self.is_configured():
            logger.warning("[TelegramReporter] TELEGRAM_BOT_TOKEN/TELEGRAM_CHAT_ID missing. Skipping report.")
            return False

        text = format_report(biases, now)
        # Token stays out of logs and exception text.
        url = f"{self.base_url.rstrip('/')}/bot{self.bot_token}/sendMessage"
        body = {"chat_id": self.chat_id, "text": text, "parse_mode": "Markdown"}

        assert self.session is not None
        try:
            resp = self.session.post(url, json=body, timeout=self.timeout_seconds)
        except Exception as e:
            logger.error(f"[TelegramReporter] Transmission failed: {type(e).__name__}")
            return False

        ok = 200 <= resp.status_code < 300
        log_event(
            logger,
            "TelegramReporter",
            now,
            level=logging.INFO if ok else logging.WARNING,
            status_code=resp.status_code,
            sent=ok,
            chars=len(text),
        )
        return ok
