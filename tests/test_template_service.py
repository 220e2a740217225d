"""Tests for the SLA template service.

Covers:
- Creation with validation and package defaults
- Partial updates and version bumps
- Soft delete and cloning
- Previews against sample and real quotes
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from quotedesk.errors import NotFoundError, ValidationError
from quotedesk.mapping.mapper import resolve_variable
from quotedesk.models.enums import PackageType, VariableType
from quotedesk.models.sla_template import SLATemplate, TemplateVariable
from quotedesk.schemas.sla import TemplateCreate, TemplateUpdate, TemplateVariableSchema
from quotedesk.services.templates import TemplateService

# ── Helpers ──────────────────────────────────────────────────────────


def _make_db() -> AsyncMock:
    db = AsyncMock()
    db.add = MagicMock()
    return db


def _variable(name: str, **kwargs) -> TemplateVariableSchema:
    kwargs.setdefault("display_name", name.replace("_", " ").title())
    return TemplateVariableSchema(name=name, **kwargs)


def _stored_variable(name: str, **kwargs) -> SimpleNamespace:
    fields = {
        "name": name,
        "display_name": name.replace("_", " ").title(),
        "type": "text",
        "is_required": False,
        "default_value": None,
        "data_source": None,
        "validation": None,
        "description": None,
    }
    fields.update(kwargs)
    return SimpleNamespace(**fields)


def _make_template(**overrides) -> SimpleNamespace:
    fields = {
        "id": uuid.uuid4(),
        "name": "Standard Website SLA",
        "description": "Default website terms",
        "package_type": PackageType.GENERAL_WEBSITE.value,
        "content": "Agreement with {{client_name}} for {{project_value}}.",
        "variables": [
            _stored_variable("client_name", is_required=True),
            _stored_variable("project_value", type="number"),
        ],
        "default_metrics": {"uptime_target": "99.5"},
        "default_penalties": {},
        "is_active": True,
        "is_customizable": True,
        "requires_legal_review": False,
        "usage_count": 4,
        "version": 1,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.fixture
def mock_get_template():
    with patch("quotedesk.services.templates.get_template", new_callable=AsyncMock) as mock:
        yield mock


# ── Create ───────────────────────────────────────────────────────────


class TestCreateTemplate:
    @pytest.mark.asyncio()
    async def test_creates_with_package_defaults(self):
        db = _make_db()
        data = TemplateCreate(
            name="Shop SLA",
            package_type=PackageType.ECOM_SITE,
            content="{{client_name}} gets {{uptime_guarantee}}% uptime",
            variables=[
                _variable("client_name", is_required=True),
                _variable("uptime_guarantee", type=VariableType.NUMBER, default_value=99.9),
            ],
            default_penalties={"penalty_percentage": 2},
        )

        template = await TemplateService().create_template(db, data, actor="admin")

        assert isinstance(template, SLATemplate)
        assert template.default_metrics["uptime_target"] == "99.9"
        assert template.default_metrics["availability_hours"] == "24/7"
        assert template.default_penalties["penalty_percentage"] == 2
        assert template.default_penalties["penalty_cap_percentage"] == "15"
        assert template.version == 1
        assert [v.name for v in template.variables] == ["client_name", "uptime_guarantee"]
        assert all(isinstance(v, TemplateVariable) for v in template.variables)
        assert template.variables[1].default_value == 99.9

    @pytest.mark.asyncio()
    async def test_saved_defaults_keep_their_type(self):
        data = TemplateCreate(
            name="Compliance SLA",
            package_type=PackageType.BUSINESS_PROCESS_SYSTEMS,
            content="Frameworks: {{frameworks}}. Escrow: {{source_escrow}}.",
            variables=[
                _variable("frameworks", default_value=["POPIA", "GDPR"]),
                _variable("source_escrow", type=VariableType.BOOLEAN, default_value=True),
            ],
        )

        template = await TemplateService().create_template(_make_db(), data)
        reloaded = [TemplateVariableSchema.model_validate(v) for v in template.variables]

        assert template.variables[0].default_value == ["POPIA", "GDPR"]
        assert template.variables[1].default_value is True
        frameworks = resolve_variable(reloaded[0], {})
        escrow = resolve_variable(reloaded[1], {})
        assert frameworks.source == "default"
        assert frameworks.display_value == "POPIA, GDPR"
        assert escrow.value is True
        assert escrow.display_value == "Yes"

    @pytest.mark.asyncio()
    async def test_undeclared_token_rejected(self):
        data = TemplateCreate(
            name="Broken",
            package_type=PackageType.MARKETING,
            content="{{client_name}} and {{campaign_budget}}",
            variables=[_variable("client_name")],
        )
        with pytest.raises(ValidationError) as exc_info:
            await TemplateService().create_template(_make_db(), data)
        assert exc_info.value.details["errors"] == ["Undeclared variable in content: campaign_budget"]

    @pytest.mark.asyncio()
    async def test_uptime_out_of_range_rejected(self):
        data = TemplateCreate(
            name="Too good",
            package_type=PackageType.MARKETING,
            content="Plain text",
            default_metrics={"uptime_target": 120},
        )
        with pytest.raises(ValidationError):
            await TemplateService().create_template(_make_db(), data)

    @pytest.mark.asyncio()
    async def test_duplicate_variables_rejected(self):
        data = TemplateCreate(
            name="Dupes",
            package_type=PackageType.MARKETING,
            content="{{client_name}}",
            variables=[_variable("client_name"), _variable("client_name")],
        )
        with pytest.raises(ValidationError):
            await TemplateService().create_template(_make_db(), data)

    def test_invalid_variable_name(self):
        with pytest.raises(ValueError):
            _variable("client-name")


# ── Update / delete / clone ──────────────────────────────────────────


class TestUpdateTemplate:
    @pytest.mark.asyncio()
    async def test_content_change_bumps_version(self, mock_get_template):
        template = _make_template()
        mock_get_template.return_value = template

        result = await TemplateService().update_template(
            _make_db(),
            template.id,
            TemplateUpdate(content="Hello {{client_name}}"),
        )

        assert result.content == "Hello {{client_name}}"
        assert result.version == 2

    @pytest.mark.asyncio()
    async def test_metadata_change_keeps_version(self, mock_get_template):
        template = _make_template()
        mock_get_template.return_value = template

        result = await TemplateService().update_template(
            _make_db(), template.id, TemplateUpdate(name="Renamed", requires_legal_review=True)
        )

        assert result.name == "Renamed"
        assert result.requires_legal_review is True
        assert result.version == 1

    @pytest.mark.asyncio()
    async def test_removing_used_variable_rejected(self, mock_get_template):
        mock_get_template.return_value = _make_template()
        with pytest.raises(ValidationError):
            await TemplateService().update_template(
                _make_db(), uuid.uuid4(), TemplateUpdate(variables=[_variable("client_name")])
            )

    @pytest.mark.asyncio()
    async def test_missing_template(self, mock_get_template):
        mock_get_template.return_value = None
        with pytest.raises(NotFoundError):
            await TemplateService().update_template(_make_db(), uuid.uuid4(), TemplateUpdate(name="x"))


class TestDeleteAndClone:
    @pytest.mark.asyncio()
    async def test_soft_delete(self, mock_get_template):
        template = _make_template()
        mock_get_template.return_value = template
        await TemplateService().delete_template(_make_db(), template.id)
        assert template.is_active is False

    @pytest.mark.asyncio()
    async def test_clone(self, mock_get_template):
        source = _make_template()
        mock_get_template.return_value = source
        db = _make_db()

        clone = await TemplateService().clone_template(db, source.id)

        assert clone.name == "Standard Website SLA (Copy)"
        assert clone.description == "Default website terms (Clone)"
        assert clone.parent_template_id == source.id
        assert clone.usage_count == 0
        assert clone.content == source.content
        assert [v.name for v in clone.variables] == ["client_name", "project_value"]
        assert clone.default_metrics == source.default_metrics
        assert clone.default_metrics is not source.default_metrics

    @pytest.mark.asyncio()
    async def test_clone_with_name(self, mock_get_template):
        mock_get_template.return_value = _make_template()
        clone = await TemplateService().clone_template(_make_db(), uuid.uuid4(), name="Custom")
        assert clone.name == "Custom"


# ── Preview ──────────────────────────────────────────────────────────


class TestPreviewTemplate:
    @pytest.mark.asyncio()
    async def test_preview_with_sample_quote(self, mock_get_template):
        mock_get_template.return_value = _make_template()

        preview = await TemplateService().preview_template(_make_db(), uuid.uuid4())

        assert preview.content == "Agreement with Sample Client for 115 000,00."
        assert preview.missing_variables == []
        assert preview.validation_errors == []
        assert {s.variable for s in preview.suggestions} == {"client_name", "project_value"}

    @pytest.mark.asyncio()
    async def test_preview_with_overrides(self, mock_get_template):
        mock_get_template.return_value = _make_template()
        preview = await TemplateService().preview_template(
            _make_db(), uuid.uuid4(), overrides={"client_name": "Override Co"}
        )
        assert preview.content.startswith("Agreement with Override Co")
        assert preview.variables["client_name"].source == "override"

    @pytest.mark.asyncio()
    async def test_preview_with_real_quote(self, mock_get_template):
        mock_get_template.return_value = _make_template()
        quote = SimpleNamespace(
            id=uuid.uuid4(),
            quote_number="Q-2026-0009",
            items=[],
            total_incl_vat=Decimal("23000.00"),
            status="accepted",
            client=SimpleNamespace(id=uuid.uuid4(), name=None, company="Karoo Clinic"),
        )
        with patch("quotedesk.services.templates.get_quote", new_callable=AsyncMock, return_value=quote):
            preview = await TemplateService().preview_template(_make_db(), uuid.uuid4(), quote_id=quote.id)
        assert preview.content == "Agreement with Karoo Clinic for 23 000,00."

    @pytest.mark.asyncio()
    async def test_preview_unknown_quote(self, mock_get_template):
        mock_get_template.return_value = _make_template()
        with patch("quotedesk.services.templates.get_quote", new_callable=AsyncMock, return_value=None):
            with pytest.raises(NotFoundError):
                await TemplateService().preview_template(_make_db(), uuid.uuid4(), quote_id=uuid.uuid4())
