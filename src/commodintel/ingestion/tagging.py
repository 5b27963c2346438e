from __future__ import annotations

from typing import Dict, Optional, Tuple

from ..market.types import Asset

ASSET_KEYWORDS: Dict[Asset, Tuple[str, ...]] = {
    Asset.GOLD: ("gold", "xau", "bullion", "fed", "yields", "inflation", "central bank", "haven"),
    Asset.SILVER: ("silver", "xag", "industrial metals", "manufacturing", "solar", "photovoltaic", "white metal"),
    Asset.OIL: ("oil", "crude", "wti", "brent", "opec", "inventory", "eia", "energy", "petroleum"),
}


def tag_assets(text: str, suggested_asset: Optional[str] = None) -> Tuple[Asset, ...]:
    """Assets whose keyword list matches `text`, plus the model's own label.

    Plain case-insensitive substring match ("fed" also hits "federal").
    Result order follows the Asset enum so repeated calls are identical.
    """

    lowered = (text or "").lower()
    matched = {asset for asset, keywords in ASSET_KEYWORDS.items() if any(k in lowered for k in keywords)}

    suggested = Asset.parse(suggested_asset)
    if suggested is not None:
        matched.add(suggested)

    return tuple(asset for asset in Asset if asset in matched)
