"""Tests for the variable mapper.

Covers:
- Resolution tiers (override, data source, static, fuzzy, package, default)
- Placeholders for unresolved required variables
- Type coercion and range clamping
- Single-pass rendering and undeclared tokens
- Context building errors
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from quotedesk.errors import ExtractionError, MappingError
from quotedesk.mapping.lookup import fuzzy_find, get_path, is_present
from quotedesk.mapping.mapper import (
    build_context,
    map_template,
    render_template,
    resolve_variable,
    resolve_variables,
    suggest_mappings,
    template_tokens,
    validate_template_content,
)
from quotedesk.models.enums import PackageType, VariableType
from quotedesk.schemas.quotes import ClientData, QuoteData, QuoteItemData
from quotedesk.schemas.sla import ResolvedVariable, TemplateVariableSchema, VariableValidation

COMPANY = {
    "name": "QuoteDesk Digital (Pty) Ltd",
    "email": "accounts@quotedesk.co.za",
    "governing_law": "South African Law",
}


def _var(name: str, **kwargs) -> TemplateVariableSchema:
    kwargs.setdefault("display_name", name.replace("_", " ").title())
    return TemplateVariableSchema(name=name, **kwargs)


def _context(total: str = "120000.00", overrides: dict | None = None, **client) -> dict:
    quote = QuoteData(
        id="q-1",
        quote_number="Q-2026-0007",
        date_issued=date(2026, 10, 1),
        items=[
            QuoteItemData(description="Home page and about page", unit_price=Decimal("20000")),
            QuoteItemData(description="Product catalog", quantity=Decimal("3"), unit_price=Decimal("1000")),
        ],
        total_incl_vat=Decimal(total),
        deposit_percentage=Decimal("50"),
        notes="Corporate site rebuild",
    )
    client.setdefault("name", "Thandi Mokoena")
    client.setdefault("company", "Acme Software")
    return build_context(
        quote,
        ClientData(id="c-1", **client),
        COMPANY,
        overrides=overrides,
        package_type=PackageType.GENERAL_WEBSITE,
        today=date(2026, 10, 17),
    )


# ── Resolution tiers ─────────────────────────────────────────────────


class TestResolveVariable:
    def test_static_mapping(self) -> None:
        resolved = resolve_variable(_var("client_name"), _context())
        assert resolved.value == "Thandi Mokoena"
        assert resolved.source == "static"
        assert resolved.path == "client.name"
        assert resolved.confidence == 0.9

    def test_client_name_falls_back_to_company(self) -> None:
        resolved = resolve_variable(_var("client_name"), _context(name=None))
        assert resolved.value == "Acme Software"

    def test_override_wins(self) -> None:
        context = _context(overrides={"client_name": "Override Co"})
        resolved = resolve_variable(_var("client_name"), context, overrides={"client_name": "Override Co"})
        assert resolved.value == "Override Co"
        assert resolved.source == "override"

    def test_blank_override_ignored(self) -> None:
        resolved = resolve_variable(_var("client_name"), _context(), overrides={"client_name": "  "})
        assert resolved.source == "static"

    def test_data_source_path(self) -> None:
        variable = _var("first_deliverable", data_source="items.0.description")
        resolved = resolve_variable(variable, _context())
        assert resolved.value == "Home page and about page"
        assert resolved.source == "data_source"
        assert resolved.confidence == 1.0

    def test_uptime_guarantee_for_high_value_quote(self) -> None:
        variable = _var("uptime_guarantee", type=VariableType.NUMBER)
        resolved = resolve_variable(variable, _context(total="600000"))
        assert resolved.value == Decimal("99.9")
        assert resolved.path == "derived.uptime_target"

    def test_fuzzy_match(self) -> None:
        context = {"infrastructure": {"hosting_region": "af-south-1"}}
        resolved = resolve_variable(_var("hosting_region"), context)
        assert resolved.value == "af-south-1"
        assert resolved.source == "fuzzy"
        assert resolved.path == "infrastructure.hosting_region"
        assert resolved.confidence == 0.7

    def test_fuzzy_scores_key_not_branch(self) -> None:
        context = {"infrastructure": {"hosting": {"region": "af-south-1"}}}
        assert resolve_variable(_var("hosting_region"), context).source == "none"

    def test_client_prefixed_variable_keeps_default(self) -> None:
        variable = _var("client_signatory", display_name="Signatory", default_value="TBC")
        resolved = resolve_variable(variable, _context())
        assert resolved.value == "TBC"
        assert resolved.source == "default"

    def test_package_mapping(self) -> None:
        resolved = resolve_variable(_var("products_count"), _context(), PackageType.ECOM_SITE)
        assert resolved.value == "2"
        assert resolved.source == "package"
        assert resolved.path == "derived.item_count"
        assert resolved.confidence == 0.8

    def test_package_mapping_alternate_key(self) -> None:
        context = {"delivery": "Courier Guy"}
        resolved = resolve_variable(_var("shipping_integration"), context, PackageType.ECOM_SITE)
        assert resolved.value == "Courier Guy"
        assert resolved.source == "package"

    def test_default_value_used_exactly(self) -> None:
        resolved = resolve_variable(_var("zeta_qux", default_value="Gold"), _context())
        assert resolved.value == "Gold"
        assert resolved.source == "default"

    def test_required_without_source_gets_placeholder(self) -> None:
        variable = _var("signatory_xyz", display_name="Authorised Signatory", is_required=True)
        resolved = resolve_variable(variable, _context())
        assert resolved.value == "[Authorised Signatory]"
        assert resolved.source == "placeholder"

    def test_optional_without_source_is_empty(self) -> None:
        resolved = resolve_variable(_var("zeta_qux"), _context())
        assert resolved.value is None
        assert resolved.display_value == ""
        assert resolved.source == "none"


class TestResolveVariables:
    def test_missing_required_listed(self) -> None:
        result = resolve_variables(
            [_var("client_name", is_required=True), _var("signatory_xyz", is_required=True)],
            _context(),
        )
        assert result.missing_required == ["signatory_xyz"]

    def test_duplicate_declaration_rejected(self) -> None:
        with pytest.raises(MappingError):
            resolve_variables([_var("client_name"), _var("client_name")], _context())


# ── Coercion ─────────────────────────────────────────────────────────


class TestCoercion:
    def test_number_clamped_to_max(self) -> None:
        variable = _var("discount_rate", type=VariableType.NUMBER, validation=VariableValidation(min=0, max=100))
        resolved = resolve_variable(variable, {}, overrides={"discount_rate": 150})
        assert resolved.value == Decimal("100")

    def test_number_clamped_to_min(self) -> None:
        variable = _var("discount_rate", type=VariableType.NUMBER, validation=VariableValidation(min=0, max=100))
        resolved = resolve_variable(variable, {}, overrides={"discount_rate": -5})
        assert resolved.value == Decimal("0")

    def test_invalid_number_becomes_zero(self) -> None:
        variable = _var("discount_rate", type=VariableType.NUMBER)
        resolved = resolve_variable(variable, {}, overrides={"discount_rate": "lots"})
        assert resolved.value == Decimal("0")

    def test_number_display(self) -> None:
        variable = _var("project_value", type=VariableType.NUMBER)
        resolved = resolve_variable(variable, _context())
        assert resolved.display_value == "120 000,00"

    def test_whole_number_display_has_no_decimals(self) -> None:
        variable = _var("response_time_hours", type=VariableType.NUMBER)
        resolved = resolve_variable(variable, _context(total="600000"))
        assert resolved.display_value == "1"

    def test_uptime_display_keeps_precision(self) -> None:
        variable = _var("uptime_guarantee", type=VariableType.NUMBER)
        resolved = resolve_variable(variable, _context(total="600000"))
        assert resolved.display_value == "99,9"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("true", True), ("TRUE", True), ("1", True), ("yes", False), (0, False), (2, True)],
    )
    def test_boolean(self, raw, expected: bool) -> None:
        variable = _var("rush_job", type=VariableType.BOOLEAN)
        assert resolve_variable(variable, {}, overrides={"rush_job": raw}).value is expected

    def test_date(self) -> None:
        variable = _var("go_live", type=VariableType.DATE)
        resolved = resolve_variable(variable, {}, overrides={"go_live": "2026-10-17"})
        assert resolved.value == date(2026, 10, 17)
        assert resolved.display_value == "17 October 2026"

    def test_list_joined_as_text(self) -> None:
        resolved = resolve_variable(_var("compliance_requirements"), _context())
        assert resolved.value == "POPIA"


# ── Rendering ────────────────────────────────────────────────────────


class TestRenderTemplate:
    def test_all_tokens_replaced(self) -> None:
        content = "Agreement for {{client_name}} ({{ client_company }}) governed by {{governing_law}}."
        result = map_template(
            content,
            [_var("client_name"), _var("client_company"), _var("governing_law")],
            _context(),
        )
        assert result.content == (
            "Agreement for Thandi Mokoena (Acme Software) governed by South African Law."
        )
        assert "{{" not in result.content
        assert result.unresolved_tokens == []

    def test_undeclared_token_bracketed(self) -> None:
        rendered, unresolved = render_template("Hello {{nobody}} and {{nobody}}", {})
        assert rendered == "Hello [nobody] and [nobody]"
        assert unresolved == ["nobody"]

    def test_values_containing_braces_not_expanded(self) -> None:
        resolved = {"a": ResolvedVariable(name="a", value="{{b}}", display_value="{{b}}", source="override")}
        rendered, unresolved = render_template("{{a}}", resolved)
        assert rendered == "{{b}}"
        assert unresolved == []

    def test_rendering_is_repeatable(self) -> None:
        variables = [_var("client_name"), _var("project_value", type=VariableType.NUMBER)]
        context = _context()
        first = map_template("{{client_name}}: R{{project_value}}", variables, context)
        second = map_template("{{client_name}}: R{{project_value}}", variables, context)
        assert first.content == second.content == "Thandi Mokoena: R120 000,00"

    def test_non_text_content_rejected(self) -> None:
        with pytest.raises(MappingError):
            render_template(None, {})  # type: ignore[arg-type]


# ── Context ──────────────────────────────────────────────────────────


class TestBuildContext:
    def test_branches_present(self) -> None:
        context = _context()
        assert context["client"]["name"] == "Thandi Mokoena"
        assert context["company"]["name"] == COMPANY["name"]
        assert context["derived"]["monthly_value"] == Decimal("10000.00")
        assert context["package_type"] == "general_website"

    def test_overrides_reachable_at_top_level(self) -> None:
        context = _context(overrides={"domain": "acme.co.za"})
        assert context["domain"] == "acme.co.za"
        assert resolve_variable(_var("domain_name"), context).value == "acme.co.za"

    def test_malformed_quote(self) -> None:
        with pytest.raises(ExtractionError):
            build_context({"items": "not a list"}, {"id": "c-1"}, COMPANY)

    def test_overrides_must_be_mapping(self) -> None:
        with pytest.raises(ExtractionError):
            build_context({"id": "q-1"}, {"id": "c-1"}, COMPANY, overrides=["x"])  # type: ignore[arg-type]


# ── Lookup helpers ───────────────────────────────────────────────────


class TestLookup:
    def test_get_path_indexes_and_length(self) -> None:
        data = {"items": [{"name": "a"}, {"name": "b"}]}
        assert get_path(data, "items.1.name") == "b"
        assert get_path(data, "items.length") == 2
        assert get_path(data, "items.5.name") is None
        assert get_path(data, "items.0.name.deeper") is None

    @pytest.mark.parametrize(("value", "present"), [(None, False), ("", False), ([], False), (0, True), ("x", True)])
    def test_is_present(self, value, present: bool) -> None:
        assert is_present(value) is present

    def test_fuzzy_ignores_short_terms(self) -> None:
        assert fuzzy_find({"id": "x"}, "id") is None

    def test_fuzzy_prefers_more_overlap(self) -> None:
        data = {"support": "basic", "support_hours": "24/7"}
        match = fuzzy_find(data, "support_hours")
        assert match is not None
        assert match.path == "support_hours"


# ── Template inspection ──────────────────────────────────────────────


class TestTemplateContent:
    def test_tokens_in_order(self) -> None:
        assert template_tokens("{{b}} {{a}} {{ b }}") == ["b", "a"]

    def test_undeclared_reported(self) -> None:
        errors = validate_template_content("{{client_name}} {{missing}}", [_var("client_name")])
        assert errors == ["Undeclared variable in content: missing"]

    def test_size_limit(self) -> None:
        errors = validate_template_content("x" * 11, [], max_size=10)
        assert errors == ["Template content exceeds 10 characters"]

    def test_suggestions(self) -> None:
        suggestions = suggest_mappings([_var("client_email"), _var("zeta_qux")], _context(email="t@acme.co.za"))
        assert suggestions[0].path == "client.email"
        assert suggestions[0].suggested_value == "t@acme.co.za"
        assert suggestions[1].source == "none"
