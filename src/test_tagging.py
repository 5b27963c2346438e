from commodintel.ingestion.tagging import ASSET_KEYWORDS, tag_assets
from commodintel.market.types import Asset


def test_keyword_match_is_case_insensitive():
    assert tag_assets("BULLION demand lifts XAU") == (Asset.GOLD,)


def test_multiple_assets_in_declaration_order():
    assert tag_assets("Crude slips while solar demand props up silver and gold") == (
        Asset.GOLD,
        Asset.SILVER,
        Asset.OIL,
    )


def test_model_label_is_unioned():
    assert tag_assets("Copper-led rally in base metals", "silver") == (Asset.SILVER,)
    assert tag_assets("OPEC+ extends cuts", "GOLD") == (Asset.GOLD, Asset.OIL)


def test_unknown_model_label_is_ignored():
    assert tag_assets("Copper-led rally in base metals", "COPPER") == ()
    assert tag_assets("Copper-led rally in base metals", None) == ()


def test_tagging_is_idempotent():
    text = "EIA inventory draw and Fed minutes move crude and gold"
    first = tag_assets(text, "OIL")
    second = tag_assets(text, "OIL")
    assert first == second
    assert tag_assets(" ".join(a.value for a in first)) == first


def test_every_asset_has_keywords():
    assert set(ASSET_KEYWORDS) == set(Asset)
    assert all(ASSET_KEYWORDS[a] for a in Asset)
