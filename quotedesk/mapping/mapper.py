"""Variable mapper: resolves template variables and renders template bodies.

Pure Python, no DB access. Resolution per variable, first success wins:

    override → data_source → static table → fuzzy → package table
    → default → placeholder (required) / None (optional)

Resolved values are coerced to the declared type, then rendered in one
regex pass so no raw ``{{token}}`` survives.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

import pydantic

from quotedesk.config import ProviderSettings
from quotedesk.errors import ExtractionError, MappingError
from quotedesk.mapping.coercion import coerce_value, display_value
from quotedesk.mapping.derived import derive_fields
from quotedesk.mapping.field_map import (
    DATA_SOURCE_CONFIDENCE,
    PACKAGE_CONFIDENCE,
    PACKAGE_FIELD_MAPPINGS,
    STATIC_CONFIDENCE,
    STATIC_FIELD_MAPPINGS,
)
from quotedesk.mapping.lookup import fuzzy_find, get_path, is_present
from quotedesk.models.enums import PackageType
from quotedesk.schemas.quotes import ClientData, QuoteData
from quotedesk.schemas.sla import (
    VARIABLE_NAME_RE,
    MappingResult,
    MappingSuggestion,
    ResolvedVariable,
    TemplateVariableSchema,
)

logger = logging.getLogger(__name__)

TOKEN_RE = re.compile(r"\{\{\s*(\w+)\s*\}\}")


# ── Context ──────────────────────────────────────────────────────────


def company_from_settings(provider: ProviderSettings) -> dict[str, Any]:
    """Provider identity as the ``company`` branch of the context."""
    return {
        "name": provider.company_name,
        "address": provider.company_address,
        "email": provider.company_email,
        "phone": provider.company_phone,
        "currency": provider.currency,
        "vat_percentage": provider.vat_percentage,
        "governing_law": provider.governing_law,
        "jurisdiction": provider.jurisdiction,
    }


def build_context(
    quote: QuoteData | Mapping[str, Any],
    client: ClientData | Mapping[str, Any],
    company: Mapping[str, Any],
    overrides: Mapping[str, Any] | None = None,
    package_type: PackageType | None = None,
    warranty_months: int = 3,
    today: date | None = None,
) -> dict[str, Any]:
    """Merge quote, client, company, derived fields and overrides into one tree.

    Raises:
        ExtractionError: a source record has an unexpected shape.
    """
    try:
        quote_data = quote if isinstance(quote, QuoteData) else QuoteData.model_validate(quote)
        client_data = client if isinstance(client, ClientData) else ClientData.model_validate(client)
    except pydantic.ValidationError as exc:
        raise ExtractionError(
            "Unexpected quote or client shape",
            {"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc
    if overrides is not None and not isinstance(overrides, Mapping):
        raise ExtractionError("Overrides must be a mapping", {"type": type(overrides).__name__})
    if not isinstance(company, Mapping):
        raise ExtractionError("Company settings must be a mapping", {"type": type(company).__name__})

    client_fields = client_data.model_dump()
    client_fields["name"] = client_data.name or client_data.company

    context: dict[str, Any] = quote_data.model_dump()
    context["client"] = client_fields
    context["company"] = dict(company)
    context["derived"] = derive_fields(quote_data, client_data, warranty_months, today)
    context["package_type"] = package_type.value if package_type else None
    context["overrides"] = dict(overrides or {})
    # Caller context also reachable at top level (domain, hosting_provider, ...)
    for key, value in (overrides or {}).items():
        context.setdefault(key, value)
    return context


# ── Resolution ───────────────────────────────────────────────────────


def _find_source(
    variable: TemplateVariableSchema,
    context: Mapping[str, Any],
    package_type: PackageType | None,
    overrides: Mapping[str, Any],
) -> tuple[str, str | None, float, Any] | None:
    """(source, path, confidence, raw value) of the first tier that resolves."""
    if variable.name in overrides and is_present(overrides[variable.name]):
        return "override", f"overrides.{variable.name}", DATA_SOURCE_CONFIDENCE, overrides[variable.name]

    if variable.data_source:
        value = get_path(context, variable.data_source)
        if is_present(value):
            return "data_source", variable.data_source, DATA_SOURCE_CONFIDENCE, value

    for path in STATIC_FIELD_MAPPINGS.get(variable.name, ()):
        value = get_path(context, path)
        if is_present(value):
            return "static", path, STATIC_CONFIDENCE, value

    match = fuzzy_find(context, variable.name)
    if match is not None:
        return "fuzzy", match.path, match.confidence, match.value

    if package_type is not None:
        for path in PACKAGE_FIELD_MAPPINGS.get(package_type, {}).get(variable.name, ()):
            value = get_path(context, path)
            if is_present(value):
                return "package", path, PACKAGE_CONFIDENCE, value

    return None


def resolve_variable(
    variable: TemplateVariableSchema,
    context: Mapping[str, Any],
    package_type: PackageType | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ResolvedVariable:
    """Resolve and coerce a single variable. Never raises for missing data."""
    found = _find_source(variable, context, package_type, overrides or {})
    if found is not None:
        source, path, confidence, raw = found
        value = coerce_value(raw, variable)
        return ResolvedVariable(
            name=variable.name,
            value=value,
            display_value=display_value(value),
            source=source,
            path=path,
            confidence=confidence,
        )

    if is_present(variable.default_value):
        value = coerce_value(variable.default_value, variable)
        return ResolvedVariable(
            name=variable.name, value=value, display_value=display_value(value), source="default"
        )

    if variable.is_required:
        placeholder = f"[{variable.display_name}]"
        return ResolvedVariable(
            name=variable.name, value=placeholder, display_value=placeholder, source="placeholder"
        )

    return ResolvedVariable(name=variable.name, source="none")


def resolve_variables(
    variables: Sequence[TemplateVariableSchema],
    context: Mapping[str, Any],
    package_type: PackageType | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> MappingResult:
    """Resolve every declared variable.

    Raises:
        MappingError: the same variable name is declared twice.
    """
    result = MappingResult()
    for variable in variables:
        if variable.name in result.variables:
            raise MappingError(f"Variable declared twice: {variable.name}", {"variable": variable.name})
        resolved = resolve_variable(variable, context, package_type, overrides)
        result.variables[variable.name] = resolved
        if resolved.source == "placeholder":
            result.missing_required.append(variable.name)

    if result.missing_required:
        logger.warning("Required variables unresolved: %s", ", ".join(result.missing_required))
    logger.debug(
        "Variables resolved: %s",
        {name: var.source for name, var in result.variables.items()},
    )
    return result


# ── Rendering ────────────────────────────────────────────────────────


def render_template(content: str, resolved: Mapping[str, ResolvedVariable]) -> tuple[str, list[str]]:
    """Substitute every ``{{token}}`` in one pass.

    Undeclared tokens become ``[token]`` and are returned as unresolved.

    Raises:
        MappingError: content is not a string.
    """
    if not isinstance(content, str):
        raise MappingError("Template content must be text", {"type": type(content).__name__})

    unresolved: list[str] = []

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        variable = resolved.get(name)
        if variable is not None:
            return variable.display_value
        if name not in unresolved:
            unresolved.append(name)
        return f"[{name}]"

    rendered = TOKEN_RE.sub(_replace, content)
    if unresolved:
        logger.warning("Template tokens without a declared variable: %s", ", ".join(unresolved))
    return rendered, unresolved


def map_template(
    content: str,
    variables: Sequence[TemplateVariableSchema],
    context: Mapping[str, Any],
    package_type: PackageType | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> MappingResult:
    """Resolve all variables then render the body."""
    result = resolve_variables(variables, context, package_type, overrides)
    result.content, result.unresolved_tokens = render_template(content, result.variables)
    return result


def suggest_mappings(
    variables: Sequence[TemplateVariableSchema],
    context: Mapping[str, Any],
    package_type: PackageType | None = None,
) -> list[MappingSuggestion]:
    """Where each variable would be read from, without overrides or defaults."""
    suggestions = []
    for variable in variables:
        found = _find_source(variable, context, package_type, {})
        if found is None:
            suggestions.append(MappingSuggestion(variable=variable.name, path=None, source="none", confidence=0.0))
            continue
        source, path, confidence, raw = found
        suggestions.append(MappingSuggestion(
            variable=variable.name,
            path=path,
            source=source,
            confidence=confidence,
            suggested_value=raw,
        ))
    return suggestions


def template_tokens(content: str) -> list[str]:
    """Distinct token names in order of first appearance."""
    seen: dict[str, None] = {}
    for match in TOKEN_RE.finditer(content):
        seen.setdefault(match.group(1), None)
    return list(seen)


def validate_template_content(
    content: str,
    variables: Sequence[TemplateVariableSchema],
    max_size: int | None = None,
) -> list[str]:
    """Structural problems with a template; empty list when valid."""
    errors: list[str] = []
    if max_size is not None and len(content) > max_size:
        errors.append(f"Template content exceeds {max_size} characters")

    declared: set[str] = set()
    for variable in variables:
        if not VARIABLE_NAME_RE.match(variable.name):
            errors.append(f"Invalid variable name: {variable.name}")
        if variable.name in declared:
            errors.append(f"Duplicate variable: {variable.name}")
        declared.add(variable.name)

    for token in template_tokens(content):
        if token not in declared:
            errors.append(f"Undeclared variable in content: {token}")
    return errors
