"""Static variable-name → context-path tables.

Paths are dotted lookups into the mapping context built by
``quotedesk.mapping.mapper.build_context``.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from quotedesk.models.enums import PackageType

STATIC_CONFIDENCE = 0.9
PACKAGE_CONFIDENCE = 0.8
FUZZY_MAX_CONFIDENCE = 0.7
DATA_SOURCE_CONFIDENCE = 1.0

STATIC_FIELD_MAPPINGS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    # Client
    "client_name": ("client.name", "client.company"),
    "client_company": ("client.company",),
    "client_email": ("client.email",),
    "client_phone": ("client.phone",),
    "client_address": ("client.billing_address",),
    "client_billing_address": ("client.billing_address",),
    "client_delivery_address": ("client.delivery_address", "client.billing_address"),
    "client_vat_number": ("client.vat_number",),
    "client_industry": ("derived.client_industry",),
    "client_size": ("derived.client_size",),
    # Quote
    "quote_number": ("quote_number",),
    "quote_date": ("date_issued",),
    "valid_until": ("valid_until",),
    "quote_valid_until": ("valid_until",),
    "subtotal_excl_vat": ("subtotal_excl_vat",),
    "vat_amount": ("vat_amount",),
    "total_incl_vat": ("total_incl_vat",),
    "deposit_percentage": ("deposit_percentage",),
    "deposit_amount": ("deposit_amount",),
    "balance_remaining": ("balance_remaining",),
    "balance_amount": ("balance_remaining",),
    "balance_percentage": ("derived.balance_percentage",),
    # Project
    "project_title": ("client.company", "client.name"),
    "project_description": ("notes", "derived.service_description"),
    "project_value": ("total_incl_vat",),
    "project_duration": ("derived.estimated_duration",),
    "project_scope": ("derived.project_scope",),
    "project_timeline_days": ("derived.project_timeline_days",),
    "project_start_date": ("derived.project_start_date",),
    "project_end_date": ("derived.project_end_date",),
    "project_complexity": ("derived.project_complexity",),
    "service_description": ("derived.service_description",),
    "total_contract_value": ("derived.total_contract_value",),
    "monthly_value": ("derived.monthly_value",),
    "monthly_revenue": ("derived.monthly_value",),
    # Provider company
    "company_name": ("company.name",),
    "provider_company": ("company.name",),
    "company_address": ("company.address",),
    "company_email": ("company.email",),
    "provider_email": ("company.email",),
    "company_phone": ("company.phone",),
    "company_vat_percentage": ("company.vat_percentage",),
    "governing_law": ("company.governing_law",),
    "jurisdiction": ("company.jurisdiction",),
    "agreement_date": ("derived.agreement_date",),
    "warranty_months": ("derived.warranty_months",),
    # Technical
    "domain_name": ("domain", "website_url"),
    "hosting_platform": ("hosting_provider",),
    "website_type": ("website_type",),
    "features": ("features",),
    "pages_count": ("pages", "derived.estimated_pages"),
    "products_count": ("products",),
    "users_expected": ("expected_users",),
    # Service levels
    "uptime_guarantee": ("derived.uptime_target",),
    "uptime_requirement": ("derived.uptime_target",),
    "response_time_hours": ("derived.response_time_hours",),
    "response_time_requirement": ("derived.response_time_hours",),
    "resolution_time_hours": ("derived.resolution_time_hours",),
    "resolution_time_requirement": ("derived.resolution_time_hours",),
    "support_hours": ("derived.support_hours",),
    "support_level": ("derived.support_level",),
    "maintenance_window": ("derived.maintenance_window",),
    # Compliance and security
    "compliance_requirements": ("derived.compliance_frameworks",),
    "security_requirements": ("derived.security_level",),
    "data_protection_level": ("derived.data_protection",),
    "backup_frequency": ("derived.backup_frequency",),
    "retention_period": ("derived.data_retention_days",),
})

# Consulted after the fuzzy search, so these fire only when no context key
# carries most of the variable name's terms.
PACKAGE_FIELD_MAPPINGS: Mapping[PackageType, Mapping[str, tuple[str, ...]]] = MappingProxyType({
    PackageType.ECOM_SITE: MappingProxyType({
        "products_count": ("derived.item_count", "derived.estimated_products"),
        "payment_gateway": ("payment_gateway", "payment_provider"),
        "shipping_integration": ("shipping", "delivery"),
    }),
    PackageType.GENERAL_WEBSITE: MappingProxyType({
        "pages_count": ("derived.estimated_pages", "derived.item_count"),
        "contact_form": ("contact", "form"),
        "cms_platform": ("cms", "wordpress", "content_management"),
    }),
    PackageType.BUSINESS_PROCESS_SYSTEMS: MappingProxyType({
        "user_roles": ("roles", "permissions"),
        "automation_rules": ("automation", "workflows"),
        "reporting_frequency": ("reports", "analytics"),
    }),
    PackageType.MARKETING: MappingProxyType({
        "campaign_types": ("campaigns", "marketing"),
        "lead_sources": ("leads", "sources"),
        "conversion_goals": ("conversion", "goals"),
    }),
})
