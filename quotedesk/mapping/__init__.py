"""Template variable mapping: context building, resolution and rendering."""

from quotedesk.mapping.mapper import (
    build_context,
    company_from_settings,
    map_template,
    render_template,
    resolve_variable,
    resolve_variables,
    suggest_mappings,
    template_tokens,
    validate_template_content,
)

__all__ = [
    "build_context",
    "company_from_settings",
    "map_template",
    "render_template",
    "resolve_variable",
    "resolve_variables",
    "suggest_mappings",
    "template_tokens",
    "validate_template_content",
]
