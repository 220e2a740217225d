"""Package-type detector: classifies a quote from its free text.

Pure Python, no DB access. Each category scores weighted keyword hits over
the combined quote/client/context text plus item-pattern hits over the line
items; categories with any evidence then get value and item-count nudges.
The highest score wins, ties resolved by ``TIE_BREAK_ORDER``.
"""

from __future__ import annotations

import functools
import logging
import re
from decimal import Decimal
from typing import Any

from quotedesk.detection.keywords import (
    CONFIDENCE_THRESHOLDS,
    DEFAULT_PACKAGE_TYPE,
    HIGH_WEIGHT,
    ITEM_COUNT_BELOW_RANGE_SCORE,
    ITEM_COUNT_IN_RANGE_SCORE,
    ITEM_PATTERN_WEIGHT,
    LEAD_BOOST,
    LEAD_RATIO,
    MAX_BOOSTED_CONFIDENCE,
    NO_MATCH_CONFIDENCE,
    PACKAGE_PROFILES,
    TIE_BREAK_ORDER,
    VALUE_IN_RANGE_SCORE,
    VALUE_NEAR_RANGE_SCORE,
    PackageProfile,
)
from quotedesk.errors import ValidationError
from quotedesk.mapping.formatters import format_currency
from quotedesk.models.enums import ConfidenceLevel, PackageType
from quotedesk.schemas.detection import DetectionResult, DetectionValidation
from quotedesk.schemas.quotes import ClientData, QuoteData

logger = logging.getLogger(__name__)

# Values this far outside the typical range still count as "near"
_NEAR_BELOW = Decimal("0.5")
_NEAR_ABOVE = Decimal("1.3")


# ── Text preparation ─────────────────────────────────────────────────


def _context_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dict):
        return " ".join(_context_text(v) for v in value.values())
    if isinstance(value, (list, tuple, set)):
        return " ".join(_context_text(v) for v in value)
    return str(value)


def _combined_text(quote: QuoteData, client: ClientData, context: dict[str, Any]) -> str:
    """All free text in one lowercase string; item descriptions appear twice."""
    descriptions = [item.description for item in quote.items]
    parts = [
        quote.terms_text or "",
        quote.notes or "",
        quote.quote_number or "",
        client.name or "",
        client.company or "",
        *descriptions,
        *(_context_text(v) for v in context.values()),
        *descriptions,
    ]
    return " ".join(parts).lower()


@functools.lru_cache(maxsize=512)
def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(phrase.lower())}(?!\w)")


def _count(text: str, phrase: str) -> int:
    return len(_phrase_pattern(phrase).findall(text))


# ── Scoring ──────────────────────────────────────────────────────────


def _value_score(total: Decimal, profile: PackageProfile) -> float:
    low, high = profile.value_range
    if low <= total <= high:
        return VALUE_IN_RANGE_SCORE
    if low * _NEAR_BELOW <= total < low or high < total <= high * _NEAR_ABOVE:
        return VALUE_NEAR_RANGE_SCORE
    return 0.0


def _item_count_score(count: int, profile: PackageProfile) -> float:
    low, high = profile.item_count_range
    if low <= count <= high:
        return ITEM_COUNT_IN_RANGE_SCORE
    if 0 < count < low:
        return ITEM_COUNT_BELOW_RANGE_SCORE
    return 0.0


def score_package_types(
    quote: QuoteData,
    client: ClientData,
    context: dict[str, Any] | None = None,
) -> tuple[dict[PackageType, float], dict[PackageType, list[str]], bool]:
    """Score every package type.

    Returns:
        (scores, reasoning, any_match) where ``any_match`` is False when no
        keyword or item pattern of any category was found.
    """
    text = _combined_text(quote, client, context or {})
    items_text = " ".join(item.description for item in quote.items).lower()
    total = quote.total_incl_vat
    item_count = len(quote.items)

    scores: dict[PackageType, float] = {}
    reasoning: dict[PackageType, list[str]] = {}
    any_match = False

    for package_type in TIE_BREAK_ORDER:
        profile = PACKAGE_PROFILES[package_type]
        reasons: list[str] = []
        evidence = 0.0

        for keyword, weight in profile.keywords.items():
            hits = _count(text, keyword)
            if hits:
                evidence += hits * weight
                label = "high weight" if weight >= HIGH_WEIGHT else "normal weight"
                reasons.append(f'Found keyword: "{keyword}" ({label})')

        for pattern in profile.item_patterns:
            hits = _count(items_text, pattern)
            if hits:
                evidence += hits * ITEM_PATTERN_WEIGHT
                reasons.append(f'Found item pattern: "{pattern}"')

        score = evidence
        if evidence > 0:
            any_match = True
            value_score = _value_score(total, profile)
            if value_score == VALUE_IN_RANGE_SCORE:
                reasons.append(f"Project value ({format_currency(total)}) aligns with typical range")
            score += value_score + _item_count_score(item_count, profile)

        scores[package_type] = round(score, 2)
        reasoning[package_type] = reasons

    return scores, reasoning, any_match


def _ranked(scores: dict[PackageType, float]) -> list[tuple[PackageType, float]]:
    """Highest score first; equal scores keep ``TIE_BREAK_ORDER``."""
    return sorted(
        ((pt, scores.get(pt, 0.0)) for pt in TIE_BREAK_ORDER),
        key=lambda entry: (-entry[1], TIE_BREAK_ORDER.index(entry[0])),
    )


def _confidence(ranked: list[tuple[PackageType, float]]) -> int:
    total = sum(score for _, score in ranked)
    if total <= 0:
        return 0
    top = ranked[0][1]
    runner_up = ranked[1][1] if len(ranked) > 1 else 0.0
    base = top / total * 100
    if top > runner_up * LEAD_RATIO:
        return round(min(base + LEAD_BOOST, MAX_BOOSTED_CONFIDENCE))
    return round(base)


def confidence_level(confidence: int) -> ConfidenceLevel:
    """Map a 0-100 confidence onto its band."""
    for level in (ConfidenceLevel.HIGH, ConfidenceLevel.MEDIUM, ConfidenceLevel.LOW):
        if confidence >= CONFIDENCE_THRESHOLDS[level]:
            return level
    return ConfidenceLevel.MINIMAL


# ── Public API ───────────────────────────────────────────────────────


def _require_identity(
    quote: QuoteData | None, client: ClientData | None
) -> tuple[QuoteData, ClientData]:
    if quote is None or client is None:
        raise ValidationError("Quote and client data are required")
    if not quote.id:
        raise ValidationError("Quote id is required", {"field": "quote.id"})
    if not client.id:
        raise ValidationError("Client id is required", {"field": "client.id"})
    if not (client.name or client.company):
        raise ValidationError("Client name or company is required", {"field": "client.name"})
    return quote, client


def detect_package_type(
    quote: QuoteData | None,
    client: ClientData | None,
    context: dict[str, Any] | None = None,
) -> DetectionResult:
    """Classify a quote into one of the four package types.

    Raises:
        ValidationError: quote or client missing, or lacking identity fields.
    """
    quote, client = _require_identity(quote, client)

    scores, reasoning, any_match = score_package_types(quote, client, context)

    if not any_match:
        result = DetectionResult(
            package_type=DEFAULT_PACKAGE_TYPE,
            confidence=NO_MATCH_CONFIDENCE,
            level=confidence_level(NO_MATCH_CONFIDENCE),
            scores=scores,
            reasoning=reasoning,
            rationale=(
                "No package keywords found; defaulting to "
                f"{PACKAGE_PROFILES[DEFAULT_PACKAGE_TYPE].display_name}"
            ),
        )
    else:
        ranked = _ranked(scores)
        winner = ranked[0][0]
        confidence = _confidence(ranked)
        level = confidence_level(confidence)
        top_reasons = "; ".join(reasoning[winner][:3])
        result = DetectionResult(
            package_type=winner,
            confidence=confidence,
            level=level,
            scores=scores,
            reasoning=reasoning,
            rationale=(
                f"{PACKAGE_PROFILES[winner].display_name} (score {scores[winner]}, "
                f"{confidence}% {level.value} confidence): {top_reasons}"
            ),
        )

    logger.info(
        "Package type detected: quote=%s type=%s confidence=%d scores=%s",
        quote.id,
        result.package_type.value,
        result.confidence,
        {pt.value: s for pt, s in scores.items()},
    )
    return result


def validate_detection(result: DetectionResult, quote: QuoteData) -> DetectionValidation:
    """Flag weak or implausible detections and offer alternatives."""
    ranked = _ranked(result.scores)
    warnings: list[str] = []
    suggestions: list[PackageType] = []

    top_score = ranked[0][1]
    runner_up, runner_up_score = ranked[1]
    if top_score - runner_up_score < 2:
        warnings.append("Low confidence in package type detection")
        suggestions.append(runner_up)
    if top_score < 3:
        warnings.append("Very weak keyword matches found")

    profile = PACKAGE_PROFILES[result.package_type]
    label = profile.display_name.lower()
    low, high = profile.value_range
    total = quote.total_incl_vat
    if not low <= total <= high:
        warnings.append(f"Project value ({format_currency(total)}) is outside typical range for {label}")
    min_items, max_items = profile.item_count_range
    item_count = len(quote.items)
    if not min_items <= item_count <= max_items:
        warnings.append(f"Item count ({item_count}) is outside typical range for {label}")

    for package_type, score in ranked[1:3]:
        if score >= 2 and package_type not in suggestions:
            suggestions.append(package_type)

    is_valid = result.confidence >= CONFIDENCE_THRESHOLDS[ConfidenceLevel.MEDIUM] and not warnings
    return DetectionValidation(is_valid=is_valid, warnings=warnings, suggestions=suggestions)


def package_catalog() -> dict[str, Any]:
    """Supported package types with their typical ranges and thresholds."""
    return {
        "supported_types": [
            {
                "type": profile.package_type.value,
                "display_name": profile.display_name,
                "value_range": {"min": profile.value_range[0], "max": profile.value_range[1]},
                "item_count_range": {"min": profile.item_count_range[0], "max": profile.item_count_range[1]},
            }
            for profile in (PACKAGE_PROFILES[pt] for pt in TIE_BREAK_ORDER)
        ],
        "confidence_thresholds": {level.value: value for level, value in CONFIDENCE_THRESHOLDS.items()},
        "tie_break_order": [pt.value for pt in TIE_BREAK_ORDER],
    }
