"""Type coercion of resolved values and their display formatting."""

from __future__ import annotations

import logging
import re
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from quotedesk.mapping.formatters import format_boolean, format_date, format_quantity
from quotedesk.models.enums import VariableType
from quotedesk.schemas.sla import TemplateVariableSchema

logger = logging.getLogger(__name__)


def _to_number(value: Any, variable: TemplateVariableSchema) -> Decimal:
    try:
        if isinstance(value, (list, tuple, dict)):
            raise InvalidOperation
        number = Decimal(str(int(value))) if isinstance(value, bool) else Decimal(str(value).strip())
        if not number.is_finite():
            raise InvalidOperation
    except InvalidOperation:
        logger.warning("Invalid number value for %s: %r", variable.name, value)
        return Decimal("0")

    rules = variable.validation
    if rules is not None:
        if rules.min is not None and number < rules.min:
            return rules.min
        if rules.max is not None and number > rules.max:
            return rules.max
    return number


def _to_date(value: Any, variable: TemplateVariableSchema) -> date:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.fromisoformat(text) if "T" in text or " " in text else date.fromisoformat(text)
        except ValueError:
            pass
    logger.warning("Invalid date value for %s: %r", variable.name, value)
    return datetime.now(UTC)


def _to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true" or value.strip() == "1"
    if isinstance(value, (int, float, Decimal)):
        return value != 0
    return bool(value)


def _to_text(value: Any, variable: TemplateVariableSchema) -> str:
    text = ", ".join(str(v) for v in value) if isinstance(value, (list, tuple)) else str(value)
    rules = variable.validation
    if rules is not None:
        if rules.options and text not in rules.options:
            logger.warning("Value for %s not among allowed options: %r", variable.name, text)
        if rules.pattern and not re.fullmatch(rules.pattern, text):
            logger.warning("Value for %s does not match pattern %s", variable.name, rules.pattern)
    return text


def coerce_value(value: Any, variable: TemplateVariableSchema) -> Any:
    """Cast a resolved value to the variable's declared type."""
    if value is None:
        return None
    if variable.type == VariableType.NUMBER:
        return _to_number(value, variable)
    if variable.type == VariableType.DATE:
        return _to_date(value, variable)
    if variable.type == VariableType.BOOLEAN:
        return _to_boolean(value)
    return _to_text(value, variable)


def display_value(value: Any) -> str:
    """Human-readable en-ZA rendering of a coerced value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return format_boolean(value)
    if isinstance(value, (int, float, Decimal)):
        return format_quantity(value)
    if isinstance(value, date):
        return format_date(value)
    if isinstance(value, (list, tuple)):
        return ", ".join(display_value(v) for v in value)
    return str(value)
