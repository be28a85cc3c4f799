from adinsights.agent.patterns import THEME_PATTERNS, calculate_relevance, match_campaigns


def _campaign(name, campaign_id=None):
    return {"campaign": {"id": campaign_id or name, "name": name}, "metrics": {"clicks": 1}}


def test_summer_sale_matches_only_the_summer_campaign():
    matches = match_campaigns("summer sale", [_campaign("Summer Sale Blowout"), _campaign("Winter Clearance")])
    assert {m.campaign.campaign_name for m in matches} == {"Summer Sale Blowout"}
    assert {"seasonal", "promotional"} <= {m.match_type for m in matches}
    assert all(m.relevance_score > 0 for m in matches)


def test_one_entry_per_shared_theme():
    matches = match_campaigns("brand sale", [_campaign("Brand Sale")])
    assert sorted(m.match_type for m in matches) == ["brand", "promotional"]


def test_query_without_theme_matches_nothing():
    assert match_campaigns("weekly report", [_campaign("Summer Sale")]) == []


def test_matches_sorted_by_relevance():
    matches = match_campaigns(
        "holiday discount deals",
        [_campaign("Discount Shoes"), _campaign("Holiday Discount Deals")],
    )
    assert matches[0].campaign.campaign_name == "Holiday Discount Deals"
    scores = [m.relevance_score for m in matches]
    assert scores == sorted(scores, reverse=True)


def test_calculate_relevance_uses_substring_overlap():
    assert calculate_relevance("summer sale", "summer sale 2024") == 100
    assert calculate_relevance("summer sale", "summer promo") == 50
    assert calculate_relevance("", "anything") == 0
    assert calculate_relevance("winter", "summer") == 0


def test_theme_order():
    assert [name for name, _ in THEME_PATTERNS] == ["holiday", "seasonal", "promotional", "brand", "conversion"]


def test_match_serialisation():
    match = match_campaigns("summer", [_campaign("Summer Push", "9")])[0]
    payload = match.to_dict()
    assert payload["matchType"] == "seasonal"
    assert payload["relevanceScore"] == 100
    assert payload["campaign"]["id"] == "9"


def test_theme_only_matches_are_kept_when_no_campaign_shares_words():
    matches = match_campaigns("seasonal deals", [_campaign("Spring Offer")])
    assert sorted(m.match_type for m in matches) == ["promotional", "seasonal"]
    assert all(m.relevance_score == 0 for m in matches)
