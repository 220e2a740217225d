"""Tests for the HTTP API.

Covers:
- HTTP Basic Auth (401 without creds, 401 wrong password, 503 unconfigured)
- Error envelope produced by the QuoteDeskError handler
- Detection, penalty, agreement and quote routes
"""

from __future__ import annotations

import base64
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from quotedesk.db.engine import get_session
from quotedesk.errors import ConflictError, ValidationError
from quotedesk.main import app
from quotedesk.models.enums import PackageType
from quotedesk.schemas.detection import DetectionResult
from quotedesk.schemas.sla import AgreementStatusForQuote, MappingResult
from quotedesk.services.agreements import GenerationOutcome


def _make_auth_header(username: str = "admin", password: str = "testpass123") -> dict[str, str]:
    """Build HTTP Basic Auth header."""
    credentials = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {credentials}"}


@pytest.fixture
def mock_settings():
    """Patch settings to use test password."""
    with patch("quotedesk.api.auth.settings") as mock:
        mock.security.api_password = "testpass123"
        yield mock


@pytest.fixture
def mock_db():
    """Override the DB session dependency."""
    mock_session = AsyncMock()

    async def fake_get():
        yield mock_session

    app.dependency_overrides[get_session] = fake_get
    yield mock_session
    app.dependency_overrides.clear()


@pytest.fixture
def client(mock_settings, mock_db):
    return TestClient(app)


def _agreement_row(**overrides) -> SimpleNamespace:
    now = datetime(2026, 10, 17, 9, 0, tzinfo=UTC)
    fields = {
        "id": uuid.uuid4(),
        "agreement_number": "SLA-2026-0001",
        "quote_id": uuid.uuid4(),
        "client_id": uuid.uuid4(),
        "template_id": uuid.uuid4(),
        "package_type": "ecom_site",
        "detection_confidence": 95,
        "content": "SLA for Acme",
        "variables": {"client_name": "Acme"},
        "missing_variables": [],
        "uptime_guarantee": Decimal("99.9"),
        "response_time_hours": Decimal("1"),
        "resolution_time_hours": Decimal("4"),
        "penalty_percentage": Decimal("0.5"),
        "penalty_cap_percentage": Decimal("10"),
        "monthly_revenue": Decimal("50000"),
        "status": "generated",
        "signature_status": "pending",
        "generated_at": now,
        "sent_at": None,
        "accepted_at": None,
        "rejected_at": None,
        "expired_at": None,
        "expires_at": now,
        "signed_at": None,
        "auto_generated": False,
        "automation_trigger": "manual",
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestAuth:
    def test_401_without_credentials(self, client):
        resp = client.get("/api/sla/detect-package-type")
        assert resp.status_code == 401

    def test_401_wrong_password(self, client):
        resp = client.get("/api/sla/detect-package-type", headers=_make_auth_header(password="wrong"))
        assert resp.status_code == 401

    def test_503_when_password_unset(self, client, mock_settings):
        mock_settings.security.api_password = ""
        resp = client.get("/api/sla/detect-package-type", headers=_make_auth_header())
        assert resp.status_code == 503

    def test_health_is_public(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestDetectionRoutes:
    def test_catalog(self, client):
        resp = client.get("/api/sla/detect-package-type", headers=_make_auth_header())
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert len(body["supported_types"]) == 4

    def test_detect(self, client):
        payload = {
            "quote": {
                "id": "q-1",
                "items": [
                    {"description": "Online store with shopping cart"},
                    {"description": "Payment gateway integration"},
                ],
                "total_incl_vat": "150000",
            },
            "client": {"id": "c-1", "company": "Acme Retail"},
            "include_validation": True,
        }
        resp = client.post("/api/sla/detect-package-type", json=payload, headers=_make_auth_header())
        assert resp.status_code == 200
        body = resp.json()
        assert body["detection"]["package_type"] == "ecom_site"
        assert body["validation"] is not None

    def test_detect_missing_client(self, client):
        payload = {"quote": {"id": "q-1", "items": []}}
        resp = client.post("/api/sla/detect-package-type", json=payload, headers=_make_auth_header())
        assert resp.status_code == 400
        assert resp.json() == {
            "success": False,
            "error": {"code": "VALIDATION_ERROR", "message": "Quote and client data are required"},
        }


class TestPenaltyRoute:
    def test_penalty(self, client):
        payload = {
            "monthly_revenue": "10000",
            "penalty_percentage": "0.5",
            "severity": "3",
            "penalty_cap_percentage": "10",
        }
        resp = client.post("/api/sla/penalty", json=payload, headers=_make_auth_header())
        assert resp.status_code == 200
        body = resp.json()
        assert Decimal(body["final_penalty"]) == Decimal("150")
        assert body["capped"] is False

    def test_negative_revenue_rejected(self, client):
        payload = {
            "monthly_revenue": "-1",
            "penalty_percentage": "0.5",
            "severity": "3",
            "penalty_cap_percentage": "10",
        }
        resp = client.post("/api/sla/penalty", json=payload, headers=_make_auth_header())
        assert resp.status_code == 422


class TestAgreementRoutes:
    def test_generate(self, client):
        row = _agreement_row()
        outcome = GenerationOutcome(
            agreement=row,
            detection=DetectionResult(package_type=PackageType.ECOM_SITE, confidence=95, level="high"),
            mapping=MappingResult(missing_required=["witness_signatory"]),
        )
        with patch("quotedesk.api.sla.agreement_service") as mock_service:
            mock_service.generate_agreement = AsyncMock(return_value=outcome)
            resp = client.post(
                "/api/sla/generate",
                json={"quote_id": str(row.quote_id)},
                headers=_make_auth_header(),
            )
        assert resp.status_code == 201
        body = resp.json()
        assert body["agreement"]["agreement_number"] == "SLA-2026-0001"
        assert body["missing_variables"] == ["witness_signatory"]
        assert mock_service.generate_agreement.await_args.kwargs["actor"] == "admin"

    def test_generate_conflict(self, client):
        with patch("quotedesk.api.sla.agreement_service") as mock_service:
            mock_service.generate_agreement = AsyncMock(
                side_effect=ConflictError("An active agreement already exists for this quote")
            )
            resp = client.post(
                "/api/sla/generate",
                json={"quote_id": str(uuid.uuid4())},
                headers=_make_auth_header(),
            )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "CONFLICT"

    def test_agreement_not_found(self, client):
        with patch("quotedesk.api.sla.get_agreement", new_callable=AsyncMock, return_value=None):
            resp = client.get(f"/api/sla/agreements/{uuid.uuid4()}", headers=_make_auth_header())
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"

    def test_agreement_detail(self, client):
        row = _agreement_row()
        with patch("quotedesk.api.sla.get_agreement", new_callable=AsyncMock, return_value=row):
            resp = client.get(f"/api/sla/agreements/{row.id}", headers=_make_auth_header())
        assert resp.status_code == 200
        assert resp.json()["status"] == "generated"

    def test_quote_status(self, client):
        status = AgreementStatusForQuote(has_agreement=False, can_generate=True)
        with patch("quotedesk.api.sla.agreement_service") as mock_service:
            mock_service.agreement_status_for_quote = AsyncMock(return_value=status)
            resp = client.get(f"/api/sla/quotes/{uuid.uuid4()}/status", headers=_make_auth_header())
        assert resp.status_code == 200
        assert resp.json()["can_generate"] is True


class TestQuoteRoutes:
    def test_convert_rejected(self, client):
        with patch("quotedesk.api.quotes.quote_service") as mock_service:
            mock_service.convert_to_invoice = AsyncMock(
                side_effect=ValidationError("Only accepted quotes can be converted to invoices")
            )
            resp = client.post(f"/api/quotes/{uuid.uuid4()}/convert-to-invoice", headers=_make_auth_header())
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Only accepted quotes can be converted to invoices"

    def test_list_clients(self, client):
        with patch("quotedesk.api.quotes.list_clients", new_callable=AsyncMock, return_value=[]):
            resp = client.get("/api/clients", headers=_make_auth_header())
        assert resp.status_code == 200
        assert resp.json() == []
