"""
HTTP tests for the tenants endpoints.
"""

from unittest.mock import AsyncMock, patch

import pytest

from campuscore.modules.shared import ConflictError
from campuscore.modules.tenants.schemas import (
    RegisteredAdmin,
    RegisteredSchool,
    TenantRegisterResponse,
    TenantSummary,
)
from tests.factories import bearer_for

SERVICE = "campuscore.modules.tenants.service"

REGISTRATION = {
    "school_name": "Green Valley School",
    "school_email": "office@gvs.example.com",
    "school_phone": "+911234567",
    "admin_name": "Meera Joshi",
    "admin_email": "meera@gvs.example.com",
    "admin_password": "Str0ngPass!",
}


def _registered(tenant) -> TenantRegisterResponse:
    return TenantRegisterResponse(
        tenant=TenantSummary(
            id=tenant.id,
            name=tenant.name,
            code=tenant.code,
            slug=tenant.slug,
            domain=tenant.domain,
        ),
        school=RegisteredSchool(id="school-1", name=tenant.name, code=tenant.slug.upper()),
        admin=RegisteredAdmin(id="admin-1", name="Meera Joshi", email="meera@gvs.example.com"),
        path=f"/schools/{tenant.slug}",
        login_url=f"/schools/{tenant.slug}/login",
    )


class TestRegisterTenantEndpoint:
    """POST /tenants/register."""

    @pytest.mark.asyncio
    async def test_success_is_201(self, client, tenant):
        with patch(
            f"{SERVICE}.register_tenant",
            new_callable=AsyncMock,
            return_value=_registered(tenant),
        ):
            response = await client.post("/api/v1/tenants/register", json=REGISTRATION)

        assert response.status_code == 201
        body = response.json()
        assert body["login_url"] == "/schools/green-valley-school/login"
        assert body["tenant"]["slug"] == "green-valley-school"

    @pytest.mark.asyncio
    async def test_existing_school_is_409(self, client):
        with patch(
            f"{SERVICE}.register_tenant",
            new_callable=AsyncMock,
            side_effect=ConflictError(
                "A school with this name already exists", error_code="TENANT_EXISTS"
            ),
        ):
            response = await client.post("/api/v1/tenants/register", json=REGISTRATION)

        assert response.status_code == 409
        assert response.json()["detail"]["message"] == "A school with this name already exists"

    @pytest.mark.asyncio
    async def test_missing_fields_is_422(self, client):
        response = await client.post(
            "/api/v1/tenants/register", json={"school_name": "Green Valley School"}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_bad_academic_year_is_422(self, client):
        response = await client.post(
            "/api/v1/tenants/register", json={**REGISTRATION, "academic_year": "2025/26"}
        )
        assert response.status_code == 422


class TestTenantLookupEndpoints:
    """Tenant listing and lookups."""

    @pytest.mark.asyncio
    async def test_list_requires_super_admin(self, client, tenant, school_admin):
        response = await client.get("/api/v1/tenants", headers=bearer_for(school_admin, tenant))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_super_admin_lists_tenants(self, client, tenant, other_tenant, super_admin):
        with patch(
            f"{SERVICE}.TenantRepository.list_all",
            new_callable=AsyncMock,
            return_value=[tenant, other_tenant],
        ):
            response = await client.get("/api/v1/tenants", headers=bearer_for(super_admin))

        assert response.status_code == 200
        assert response.json()["total"] == 2

    @pytest.mark.asyncio
    async def test_public_slug_lookup(self, client, tenant):
        with patch(
            f"{SERVICE}.TenantRepository.get_by_slug",
            new_callable=AsyncMock,
            return_value=tenant,
        ):
            response = await client.get(f"/api/v1/tenants/slug/{tenant.slug}")

        assert response.status_code == 200
        assert response.json()["name"] == tenant.name

    @pytest.mark.asyncio
    async def test_unknown_slug_is_404(self, client):
        with patch(
            f"{SERVICE}.TenantRepository.get_by_slug",
            new_callable=AsyncMock,
            return_value=None,
        ):
            response = await client.get("/api/v1/tenants/slug/ghost-school")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_other_tenant_schools_is_403(self, client, tenant, other_tenant, school_admin):
        response = await client.get(
            f"/api/v1/tenants/{other_tenant.slug}/schools",
            headers=bearer_for(school_admin, tenant),
        )
        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "TENANT_ACCESS_DENIED"
