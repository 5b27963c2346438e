from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from ..market.types import Asset, Bias, TradeHorizon


class BiasSchemaError(ValueError):
    """Classifier payload does not match the bias schema."""


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _str_tuple(obj: Dict[str, Any], key: str) -> Tuple[str, ...]:
    value = obj.get(key)
    if value is None:
        return ()
    if not isinstance(value, list):
        raise BiasSchemaError(f"'{key}' must be a list, got {type(value).__name__}")
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class HorizonAnalysis:
    bias: Bias
    confidence: float  # 0..1
    driver: str

    @classmethod
    def from_json(cls, obj: Any) -> "HorizonAnalysis":
        if not isinstance(obj, dict):
            raise BiasSchemaError(f"Horizon entry must be an object, got {type(obj).__name__}")
        try:
            bias = Bias(str(obj.get("bias", "")).strip().upper())
        except ValueError as e:
            raise BiasSchemaError(f"Unknown bias label: {obj.get('bias')!r}") from e
        try:
            confidence = float(obj["confidence"])
        except (KeyError, TypeError, ValueError) as e:
            raise BiasSchemaError(f"Missing or non-numeric confidence: {obj.get('confidence')!r}") from e
        return cls(bias=bias, confidence=_clamp01(confidence), driver=str(obj.get("driver") or ""))


@dataclass(frozen=True)
class BiasOutput:
    """Classifier verdict for one asset across all three horizons."""

    asset: Asset
    horizons: Dict[TradeHorizon, HorizonAnalysis]
    key_drivers: Tuple[str, ...] = ()
    supporting_news_ids: Tuple[str, ...] = ()
    invalidated_if: Tuple[str, ...] = ()
    timestamp: str = ""

    def horizon(self, horizon: TradeHorizon) -> HorizonAnalysis:
        return self.horizons[horizon]

    @classmethod
    def from_json(cls, asset: Asset, obj: Any) -> "BiasOutput":
        """Validate one asset block of the classifier response.

        The asset comes from the enclosing key, not from the payload.
        """
        if not isinstance(obj, dict):
            raise BiasSchemaError(f"{asset.value}: expected an object, got {type(obj).__name__}")

        raw_horizons = obj.get("horizons")
        if not isinstance(raw_horizons, dict):
            raise BiasSchemaError(f"{asset.value}: 'horizons' missing")

        horizons: Dict[TradeHorizon, HorizonAnalysis] = {}
        for horizon in TradeHorizon:
            if horizon.key not in raw_horizons:
                raise BiasSchemaError(f"{asset.value}: horizon '{horizon.key}' missing")
            try:
                horizons[horizon] = HorizonAnalysis.from_json(raw_horizons[horizon.key])
            except BiasSchemaError as e:
                raise BiasSchemaError(f"{asset.value}.{horizon.key}: {e}") from e

        return cls(
            asset=asset,
            horizons=horizons,
            key_drivers=_str_tuple(obj, "key_drivers"),
            supporting_news_ids=_str_tuple(obj, "supporting_news_ids"),
            invalidated_if=_str_tuple(obj, "invalidated_if"),
            timestamp=str(obj.get("timestamp") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": self.asset.value,
            "horizons": {
                h.key: {"bias": a.bias.value, "confidence": round(a.confidence, 4), "driver": a.driver}
                for h, a in self.horizons.items()
            },
            "key_drivers": list(self.key_drivers),
            "supporting_news_ids": list(self.supporting_news_ids),
            "invalidated_if": list(self.invalidated_if),
            "timestamp": self.timestamp,
        }
