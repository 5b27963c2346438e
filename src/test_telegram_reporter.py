from types import SimpleNamespace

import requests

from commodintel.market.types import Asset
from commodintel.reporting.telegram import TelegramReporter, format_report

from conftest import make_biases


class FakeSession:
    def __init__(self, status_code=200, error=None):
        self.status_code = status_code
        self.error = error
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(status_code=self.status_code, text="")


def test_missing_credentials_returns_false_without_network(monkeypatch):
    monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
    monkeypatch.delenv("TELEGRAM_CHAT_ID", raising=False)
    session = FakeSession()
    reporter = TelegramReporter(session=session)
    assert reporter.send_report(make_biases()) is False
    assert session.calls == []


def test_missing_chat_id_only(monkeypatch):
    monkeypatch.delenv("TELEGRAM_CHAT_ID", raising=False)
    session = FakeSession()
    assert TelegramReporter(bot_token="tkn", session=session).send_report(make_biases()) is False
    assert session.calls == []


def test_success_posts_once(fixed_now):
    session = FakeSession(status_code=200)
    reporter = TelegramReporter(bot_token="123:abc", chat_id="-100", session=session, timeout_seconds=5)

    assert reporter.send_report(make_biases(), now=fixed_now) is True
    assert len(session.calls) == 1
    call = session.calls[0]
    assert call["url"] == "https://api.telegram.org/bot123:abc/sendMessage"
    assert call["json"]["chat_id"] == "-100"
    assert call["json"]["parse_mode"] == "Markdown"
    assert call["json"]["text"] == format_report(make_biases(), fixed_now)
    assert call["timeout"] == 5


def test_non_2xx_returns_false():
    session = FakeSession(status_code=400)
    assert TelegramReporter(bot_token="t", chat_id="c", session=session).send_report(make_biases()) is False


def test_network_error_returns_false():
    session = FakeSession(error=requests.ConnectionError("connection refused"))
    assert TelegramReporter(bot_token="t", chat_id="c", session=session).send_report(make_biases()) is False


def test_format_report_content(fixed_now):
    text = format_report(make_biases(), fixed_now)
    assert text.startswith("🚨 *INSTITUTIONAL COMMODITY INTELLIGENCE*")
    assert "03/14/2025, 09:30:00 UTC" in text
    for asset in Asset:
        assert f"📈 *{asset.value} BIAS SUMMARY*" in text
    assert "┣ *Scalp:* BULLISH (70%)" in text
    assert "┗ *Swing:* NEUTRAL (40%)" in text
    assert "📝 *Brief:* Dollar softening into US session" in text
    assert text.count("• Weak DXY") == 3
    assert "• Extra" not in text
    assert text.rstrip().endswith("🛡 *Invalidation:* Bias invalidated if drivers flip.")


def test_format_report_with_empty_key_drivers(fixed_now):
    text = format_report(make_biases(key_drivers=[]), fixed_now)
    assert "•" not in text
    assert text.count("📍 *Key Drivers:*") == 3
