"""Tests for the package-type detector.

Covers:
- Keyword and item-pattern scoring with value/item-count nudges
- Default to general website when nothing matches
- Deterministic tie-break order
- Confidence bands and the lead boost
- Input validation and detection sanity checks
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from quotedesk.detection.detector import (
    confidence_level,
    detect_package_type,
    package_catalog,
    score_package_types,
    validate_detection,
)
from quotedesk.errors import ValidationError
from quotedesk.models.enums import ConfidenceLevel, PackageType
from quotedesk.schemas.quotes import ClientData, QuoteData, QuoteItemData


def _quote(*descriptions: str, total: str = "0", notes: str | None = None) -> QuoteData:
    return QuoteData(
        id="q-1",
        quote_number="Q-2026-0001",
        items=[QuoteItemData(description=d) for d in descriptions],
        total_incl_vat=Decimal(total),
        notes=notes,
    )


def _client(name: str | None = "Thandi Mokoena", company: str | None = "Acme Holdings") -> ClientData:
    return ClientData(id="c-1", name=name, company=company)


# ── Classification ───────────────────────────────────────────────────


class TestDetectPackageType:
    def test_ecommerce_quote(self) -> None:
        quote = _quote(
            "E-commerce website with shopping cart",
            "Payment gateway integration",
            "Product catalog with inventory management",
            total="120000",
        )
        result = detect_package_type(quote, _client())
        assert result.package_type == PackageType.ECOM_SITE
        assert result.confidence >= 60
        assert result.level in (ConfidenceLevel.HIGH, ConfidenceLevel.MEDIUM)
        assert any("payment gateway" in r for r in result.reasoning[PackageType.ECOM_SITE])

    def test_no_keywords_defaults_to_general_website(self) -> None:
        result = detect_package_type(_quote("Consulting hours"), _client())
        assert result.package_type == PackageType.GENERAL_WEBSITE
        assert result.confidence == 40
        assert result.level == ConfidenceLevel.LOW
        assert all(score == 0 for score in result.scores.values())

    def test_context_text_counts(self) -> None:
        result = detect_package_type(
            _quote("Phase one"),
            _client(),
            context={"brief": "Digital marketing and lead generation campaign"},
        )
        assert result.package_type == PackageType.MARKETING
        assert result.confidence >= 60

    def test_whole_word_matching(self) -> None:
        """'seo' inside another word is not a marketing hit."""
        scores, _, any_match = score_package_types(_quote("Museoscape exhibit"), _client())
        assert not any_match
        assert scores[PackageType.MARKETING] == 0

    def test_business_process_quote(self) -> None:
        quote = _quote(
            "CRM system with workflow automation",
            "Reporting dashboard",
            "User management and audit trail",
            total="300000",
        )
        assert detect_package_type(quote, _client()).package_type == PackageType.BUSINESS_PROCESS_SYSTEMS

    def test_scores_reported_for_every_type(self) -> None:
        result = detect_package_type(_quote("Company website"), _client())
        assert set(result.scores) == set(PackageType)


class TestTieBreak:
    def test_ecom_beats_business_process_on_tie(self) -> None:
        result = detect_package_type(_quote("checkout crm"), _client())
        assert result.scores[PackageType.ECOM_SITE] == result.scores[PackageType.BUSINESS_PROCESS_SYSTEMS]
        assert result.package_type == PackageType.ECOM_SITE
        assert result.confidence == 50

    def test_business_process_beats_marketing_on_tie(self) -> None:
        result = detect_package_type(_quote("crm campaign"), _client())
        assert result.scores[PackageType.BUSINESS_PROCESS_SYSTEMS] == result.scores[PackageType.MARKETING]
        assert result.package_type == PackageType.BUSINESS_PROCESS_SYSTEMS

    def test_repeated_calls_agree(self) -> None:
        quote = _quote("checkout crm")
        first = detect_package_type(quote, _client())
        second = detect_package_type(quote, _client())
        assert first == second


class TestConfidenceLevel:
    @pytest.mark.parametrize(
        ("confidence", "level"),
        [
            (95, ConfidenceLevel.HIGH),
            (80, ConfidenceLevel.HIGH),
            (79, ConfidenceLevel.MEDIUM),
            (60, ConfidenceLevel.MEDIUM),
            (40, ConfidenceLevel.LOW),
            (39, ConfidenceLevel.MINIMAL),
        ],
    )
    def test_bands(self, confidence: int, level: ConfidenceLevel) -> None:
        assert confidence_level(confidence) == level

    def test_boost_is_capped(self) -> None:
        quote = _quote("Shopping cart and payment gateway", "Online store checkout", total="200000")
        result = detect_package_type(quote, _client())
        assert result.confidence <= 95


# ── Validation ───────────────────────────────────────────────────────


class TestInputValidation:
    def test_missing_quote(self) -> None:
        with pytest.raises(ValidationError, match="Quote and client data are required"):
            detect_package_type(None, _client())

    def test_missing_client(self) -> None:
        with pytest.raises(ValidationError):
            detect_package_type(_quote("Website"), None)

    def test_quote_without_id(self) -> None:
        quote = QuoteData(items=[QuoteItemData(description="Website")])
        with pytest.raises(ValidationError, match="Quote id is required"):
            detect_package_type(quote, _client())

    def test_client_without_id(self) -> None:
        with pytest.raises(ValidationError, match="Client id is required"):
            detect_package_type(_quote("Website"), ClientData(name="Thandi"))

    def test_client_without_name_or_company(self) -> None:
        with pytest.raises(ValidationError, match="Client name or company is required") as exc_info:
            detect_package_type(_quote("Website"), ClientData(id="c-1"))
        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_company_only_client_is_accepted(self) -> None:
        result = detect_package_type(_quote("Website"), _client(name=None))
        assert result.package_type == PackageType.GENERAL_WEBSITE


class TestValidateDetection:
    def test_close_scores_flagged(self) -> None:
        quote = _quote("checkout crm")
        result = detect_package_type(quote, _client())
        validation = validate_detection(result, quote)
        assert not validation.is_valid
        assert "Low confidence in package type detection" in validation.warnings
        assert "Very weak keyword matches found" in validation.warnings
        assert validation.suggestions[0] == PackageType.BUSINESS_PROCESS_SYSTEMS

    def test_out_of_range_value_flagged(self) -> None:
        quote = _quote(
            "E-commerce website with shopping cart",
            "Payment gateway integration",
            total="5000",
        )
        validation = validate_detection(detect_package_type(quote, _client()), quote)
        assert any("outside typical range" in w for w in validation.warnings)


class TestPackageCatalog:
    def test_lists_all_types_in_tie_break_order(self) -> None:
        catalog = package_catalog()
        assert [t["type"] for t in catalog["supported_types"]] == [
            "ecom_site",
            "business_process_systems",
            "marketing",
            "general_website",
        ]
        assert catalog["confidence_thresholds"] == {"high": 80, "medium": 60, "low": 40}
