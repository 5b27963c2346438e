from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..core.orchestrator import IntelligenceEngine
from ..core.scheduler import CycleScheduler
from ..core.types import CycleOutcome, EngineState, EngineStatus
from ..market.types import Asset, TradeHorizon
from ..util.jsonlog import utc_now

BAR_WIDTH = 20
MAX_NEWS_ROWS = 10

HELP_TEXT = "commands: r = force refresh | h <ASSET> <HORIZON> = switch horizon | s = show | q = quit"


def status_label(state: EngineState) -> str:
    if state.status.busy:
        return "PROCESSING"
    if state.error is not None:
        return state.error.category.value
    return "ACTIVE"


def refresh_label(state: EngineState) -> str:
    if state.status == EngineStatus.INGESTING:
        return "Ingesting..."
    if state.status == EngineStatus.ANALYZING:
        return "Analyzing..."
    return "Force Refresh [r]"


def confidence_bar(confidence: float, width: int = BAR_WIDTH) -> str:
    filled = int(round(max(0.0, min(1.0, confidence)) * width))
    return "█" * filled + "░" * (width - filled)


def _minutes_since(then: Optional[datetime], now: datetime) -> Optional[int]:
    if then is None:
        return None
    return max(int((now - then).total_seconds() // 60), 0)


@dataclass
class ConsoleDashboard:
    """Text rendering of the latest engine state.

    Horizon selection is local view state only; it never reaches the engine.
    """

    engine: IntelligenceEngine
    scheduler: Optional[CycleScheduler] = None
    selected: Dict[Asset, TradeHorizon] = field(
        default_factory=lambda: {a: TradeHorizon.INTRADAY for a in Asset}
    )

    def select_horizon(self, asset: Asset, horizon: TradeHorizon) -> None:
        self.selected[asset] = horizon

    def request_refresh(self) -> bool:
        """The "run now" affordance. False when a cycle is already running."""
        if self.scheduler is not None and self.scheduler.is_running():
            return self.scheduler.trigger_now()
        return self.engine.run_cycle(trigger="manual") != CycleOutcome.REJECTED

    def render(self, state: Optional[EngineState] = None, now: Optional[datetime] = None) -> str:
        state = state or self.engine.state()
        now = now or utc_now()
        snap = state.snapshot
        lines: List[str] = []

        lines.append("=" * 72)
        lines.append("CIT | Commodity Intelligence Engine")
        lines.append(f"System status: {status_label(state)}    [{refresh_label(state)}]")

        sent = state.last_report_sent_at
        lines.append(f"Telegram report hub: {'LAST ' + sent.strftime('%H:%M:%S') if sent else 'WAITING'}")

        age = _minutes_since(snap.updated_at, now)
        if age is None:
            lines.append("Asset bias snapshot: no data yet")
        elif age == 0:
            lines.append("Asset bias snapshot: just updated")
        else:
            lines.append(f"Asset bias snapshot: {age}m ago")

        if self.scheduler is not None:
            remaining = self.scheduler.seconds_until_next()
            if remaining is not None:
                lines.append(f"Next scheduled cycle in {int(remaining // 60)}m")

        if state.error is not None:
            lines.append("")
            lines.append(f"!! CYCLE INTERRUPTED: {state.error.message}")

        lines.append("-" * 72)
        for asset in Asset:
            lines.extend(self._render_asset(state, asset))

        lines.append("-" * 72)
        lines.append("Live intelligence feed")
        ranked = sorted(snap.news, key=lambda n: n.impact_score, reverse=True)[:MAX_NEWS_ROWS]
        if not ranked:
            lines.append("  (no articles)")
        for article in ranked:
            tags = ",".join(a.value for a in article.assets)
            lines.append(f"  [{article.impact_score:>3}] {tags:<16} {article.title} ({article.source})")

        lines.append("Economic events")
        if not snap.events:
            lines.append("  (none)")
        for event in snap.events:
            lines.append(f"  {event.event_name} | {event.country} | IMPACT: {event.impact} | {event.actual or '-'}")
        lines.append("=" * 72)
        return "\n".join(lines)

    def _render_asset(self, state: EngineState, asset: Asset) -> List[str]:
        horizon = self.selected[asset]
        tabs = " ".join(f"<{h.value}>" if h == horizon else h.value for h in TradeHorizon)
        data = state.snapshot.biases.get(asset)

        if data is None:
            body = "analyzing..." if state.status.busy else "awaiting first cycle"
            return [f"{asset.value:<7} {tabs}", f"        {body}"]

        h = data.horizon(horizon)
        return [
            f"{asset.value:<7} {tabs}",
            f"        {h.bias.value:<8} {confidence_bar(h.confidence)} {h.confidence * 100:.0f}%",
            f"        {h.driver}",
        ]

    def handle_command(self, line: str) -> Optional[str]:
        """Apply one console command; returns text to print, or None to quit."""
        parts = line.strip().split()
        if not parts:
            return ""
        cmd = parts[0].lower()

        if cmd in ("q", "quit", "exit"):
            return None
        if cmd in ("s", "show"):
            return self.render()
        if cmd in ("r", "refresh"):
            if self.request_refresh():
                return "Refresh requested."
            return "A cycle is already running; refresh ignored."
        if cmd in ("h", "horizon"):
            if len(parts) != 3:
                return "usage: h <GOLD|SILVER|OIL> <SCALPING|INTRADAY|SWING>"
            asset = Asset.parse(parts[1])
            try:
                horizon = TradeHorizon(parts[2].upper())
            except ValueError:
                horizon = None
            if asset is None or horizon is None:
                return "usage: h <GOLD|SILVER|OIL> <SCALPING|INTRADAY|SWING>"
            self.select_horizon(asset, horizon)
            return self.render()
        return HELP_TEXT

    def run_interactive(
        self,
        read_line: Callable[[str], str] = input,
        write: Callable[[str], None] = print,
    ) -> None:
        write(self.render())
        write(HELP_TEXT)
        while True:
            try:
                line = read_line("> ")
            except EOFError:
                break
            out = self.handle_command(line)
            if out is None:
                break
            if out:
                write(out)
