from __future__ import annotations

from rental_safety.filters import DetectorEngine, RegionTable, reduce_score, risk_label
from rental_safety.models import Finding, ListingRecord, Severity, SqftSource
from rental_safety.services import analyze, extract_listing


def _severities(findings):
    return [f.severity for f in findings]


def test_payment_keywords_one_finding_each():
    findings = DetectorEngine().evaluate(ListingRecord(description="Pay by Zelle or Venmo only"))
    assert _severities(findings) == [Severity.high, Severity.high]
    assert 'Mentions "zelle"' in findings[0].message
    assert {f.category for f in findings} == {"payment"}


def test_title_keywords_are_detected():
    findings = DetectorEngine().evaluate(ListingRecord(title="WhatsApp only", description="Nice flat"))
    assert [f.category for f in findings] == ["communication"]


def test_zelle_and_five_dollar_scenario():
    result = analyze("Apartment, pay with zelle, $5/month")
    assert result.score == 0
    assert result.label == "High Risk"
    sev = _severities(result.findings)
    assert sev.count(Severity.critical) == 2
    assert sev.count(Severity.high) == 1
    # payment keyword comes before the price check
    assert result.findings[0].category == "payment"


def test_price_boundaries():
    engine = DetectorEngine()
    at_ten = engine.price_floor(ListingRecord(price="$10/month", price_amount=10))
    assert _severities(at_ten) == [Severity.critical, Severity.critical]

    below_hundred = engine.price_floor(ListingRecord(price="$99/month", price_amount=99))
    assert _severities(below_hundred) == [Severity.critical]

    at_hundred = engine.price_floor(ListingRecord(price="$100/month", price_amount=100))
    assert _severities(at_hundred) == [Severity.high]


def test_price_floor_relative_to_region():
    engine = DetectorEngine()
    # national floor is 400: 50% = 200, 70% = 280
    assert _severities(engine.price_floor(ListingRecord(price_amount=199))) == [Severity.high]
    assert _severities(engine.price_floor(ListingRecord(price_amount=250))) == [Severity.medium]
    assert engine.price_floor(ListingRecord(price_amount=280)) == []
    # Northern Virginia floor is 800
    nova = ListingRecord(price_amount=500, location="Reston, VA")
    assert _severities(engine.price_floor(nova)) == [Severity.medium]


def test_arlington_studio_has_no_price_floor_finding():
    listing = extract_listing("Cozy studio in Arlington, VA, $900/month, no square footage stated")
    engine = DetectorEngine()
    assert engine.regions.lookup(listing.location, listing.description_lower).price_floor == 800
    assert engine.price_floor(listing) == []
    findings = engine.evaluate(listing)
    assert len(findings) == 1
    assert findings[0].severity is Severity.info
    assert "(estimated)" in findings[0].message
    assert "Northern Virginia" in findings[0].message


def test_region_lookup_tiers():
    table = RegionTable.builtin()
    assert table.lookup("Norfolk, VA", "").price_floor == 600
    assert table.lookup("Roanoke, VA", "").price_floor == 500
    assert table.lookup(None, "walk to tysons corner").price_floor == 800
    assert table.lookup("Austin, TX", "great place").price_floor == 400


def test_region_table_from_file(tmp_path):
    path = tmp_path / "regions.json"
    path.write_text(
        '{"regions": [{"name": "texas", "markers": ["tx"], "tiers": [], '
        '"fallback": {"price_floor": 700, "band": {"min": 1.1, "max": 2.0, "avg": 1.5, "area_name": "Texas"}}}]}',
        encoding="utf-8",
    )
    engine = DetectorEngine(RegionTable.from_file(path))
    findings = engine.price_floor(ListingRecord(price_amount=300, location="Austin, TX"))
    assert _severities(findings) == [Severity.high]


def test_grammar_needs_more_than_two_tokens():
    engine = DetectorEngine()
    assert engine.grammar(ListingRecord(description="u can see it pls")) == []
    findings = engine.grammar(ListingRecord(description="u can see it pls, ur welcome"))
    assert _severities(findings) == [Severity.low]


def test_pay_before_viewing_negation():
    engine = DetectorEngine()
    assert engine.pay_before_viewing(ListingRecord(description="Never send money before seeing the unit")) == []
    assert engine.pay_before_viewing(ListingRecord(description="Warning: pay before viewing is a scam")) == []
    # Only the literal adjacent negation suppresses
    flagged = engine.pay_before_viewing(ListingRecord(description="Please never, ever pay before viewing"))
    assert _severities(flagged) == [Severity.critical]
    # at most one finding
    many = engine.pay_before_viewing(ListingRecord(description="money first. send deposit first. keys after payment"))
    assert len(many) == 1


def test_pay_before_viewing_first_unsuppressed_wins():
    engine = DetectorEngine()
    text = "do not send deposit first. keys after payment"
    assert len(engine.pay_before_viewing(ListingRecord(description=text))) == 1


def test_refundable_application_fee():
    engine = DetectorEngine()
    assert engine.refundable_fee(ListingRecord(description="application fee $50")) == []
    findings = engine.refundable_fee(ListingRecord(description="Refundable application fee of $50"))
    assert _severities(findings) == [Severity.medium]


def test_price_per_sqft_bands():
    engine = DetectorEngine()

    def check(rent, sqft, source=SqftSource.explicit):
        listing = ListingRecord(price_amount=rent, square_footage=sqft, sqft_source=source)
        return engine.price_per_sqft(listing)

    assert check(200, 1000)[0].severity is Severity.critical  # 0.20 < 0.30
    assert check(500, 1000)[0].severity is Severity.high  # 0.50 < 0.60
    assert check(900, 1000)[0].severity is Severity.low  # below min
    assert check(1500, 1000)[0].severity is Severity.info  # <= avg
    assert "Good price" in check(1500, 1000)[0].message
    assert "Fair price" in check(2000, 1000)[0].message
    over = check(3000, 1000)[0]
    assert (over.severity, over.category) == (Severity.low, "deal")
    assert "(estimated)" not in check(1500, 1000)[0].message
    assert "(estimated)" in check(1500, 1000, SqftSource.estimated)[0].message


def test_price_per_sqft_needs_price_and_size():
    engine = DetectorEngine()
    assert engine.price_per_sqft(ListingRecord(price_amount=1000)) == []
    assert engine.price_per_sqft(ListingRecord(square_footage=500)) == []


def test_detection_is_deterministic():
    text = "2 bed in Fairfax, VA $700/month. Act fast, text me. No credit check"
    assert analyze(text, ["2BR"]) == analyze(text, ["2BR"])


def test_reduce_score():
    assert reduce_score([]) == 100
    crit = Finding(severity=Severity.critical, message="x", category="price")
    info = Finding(severity=Severity.info, message="x", category="deal")
    low = Finding(severity=Severity.low, message="x", category="deal")
    assert reduce_score([crit]) <= 50
    assert reduce_score([info, info]) == 100
    assert reduce_score([crit, low]) == 45
    assert reduce_score([crit, crit, crit]) == 0


def test_risk_label_thresholds():
    assert risk_label(39) == "High Risk"
    assert risk_label(40) == "Medium Risk"
    assert risk_label(69) == "Medium Risk"
    assert risk_label(70) == "Low Risk"
