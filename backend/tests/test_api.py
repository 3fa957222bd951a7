"""
Tests de la API REST: autenticación, roles, forma de los errores y flujos
principales de facturación y asistente.
"""

from decimal import Decimal

import pytest

from climadesk.core.config import Settings
from climadesk.core.security import verify_password
from climadesk.models import User
from climadesk.services.auth_service import AuthBootstrapper

API = "/api/v1"
PASSWORD = "clave-segura-123"

LINE = {
    "name": "Instalacion",
    "quantity": "2",
    "unit_price": "100",
    "discount_value": "10",
    "is_taxable": True,
    "tax_rate": "18",
}


class TestAuth:
    """Login, refresh y perfil."""

    async def test_login_returns_tokens(self, api_client, admin_user):
        response = await api_client.post(f"{API}/auth/login", json={"username": "admin", "password": PASSWORD})

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["username"] == "admin"
        assert body["role"] == "admin"
        assert body["access_token"] and body["refresh_token"]

    async def test_wrong_password_is_unauthorized(self, api_client, admin_user):
        response = await api_client.post(f"{API}/auth/login", json={"username": "admin", "password": "otra"})

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_empty_credentials_use_error_body(self, api_client):
        response = await api_client.post(f"{API}/auth/login", json={"username": "", "password": ""})

        assert response.status_code == 422
        assert response.json() == {
            "detail": "Usuario y contraseña son obligatorios.",
            "error_code": "BUSINESS_VALIDATION_ERROR",
            "errors": ["Usuario y contraseña son obligatorios."],
        }

    async def test_me_and_refresh(self, api_client, plain_user):
        login = await api_client.post(f"{API}/auth/login", json={"username": "tecnico", "password": PASSWORD})
        tokens = login.json()

        me = await api_client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
        assert me.status_code == 200
        assert me.json()["username"] == "tecnico"
        assert "hashed_password" not in me.json()

        refreshed = await api_client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert refreshed.status_code == 200
        assert refreshed.json()["role"] == "user"

    async def test_refresh_token_is_not_an_access_token(self, api_client, admin_user):
        tokens = (await api_client.post(f"{API}/auth/login", json={"username": "admin", "password": PASSWORD})).json()

        response = await api_client.get(
            f"{API}/auth/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"}
        )

        assert response.status_code == 401


class TestAuthorization:
    """Acceso por rol."""

    async def test_missing_token_is_rejected(self, api_client):
        response = await api_client.get(f"{API}/clients")
        assert response.status_code == 401

    async def test_plain_user_can_read_but_not_write(self, api_client, user_headers):
        listed = await api_client.get(f"{API}/clients", headers=user_headers)
        created = await api_client.post(
            f"{API}/clients", headers=user_headers, json={"first_name": "Ana", "phone": "8095550000"}
        )

        assert listed.status_code == 200
        assert created.status_code == 403

    async def test_catalog_is_public_for_reading(self, api_client, catalog):
        response = await api_client.get(f"{API}/catalog-items")

        assert response.status_code == 200
        names = {item["name"] for item in response.json()}
        assert "Mantenimiento preventivo" in names


class TestErrorBodies:
    """Forma común {"detail", "error_code", "errors"}."""

    async def test_not_found(self, api_client, user_headers):
        response = await api_client.get(
            f"{API}/invoices/00000000-0000-0000-0000-000000000000", headers=user_headers
        )

        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "RESOURCE_NOT_FOUND"
        assert body["errors"] == [body["detail"]]

    async def test_business_errors_are_listed(self, api_client, admin_headers):
        response = await api_client.post(
            f"{API}/catalog-items", headers=admin_headers, json={"name": "", "item_type": "Service"}
        )

        assert response.status_code == 422
        assert response.json()["errors"] == [
            "Name es obligatorio.",
            "Nivel es obligatorio cuando el tipo es Service.",
        ]

    async def test_schema_errors_use_same_shape(self, api_client, admin_headers):
        response = await api_client.post(
            f"{API}/invoices", headers=admin_headers, json={"client_id": "no-es-uuid", "lines": [LINE]}
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "REQUEST_VALIDATION_ERROR"
        assert body["errors"][0].startswith("client_id:")

    async def test_referenced_client_cannot_be_deleted(self, api_client, admin_headers, client_entity):
        quote = await api_client.post(
            f"{API}/quotes", headers=admin_headers, json={"client_id": str(client_entity.id), "lines": [LINE]}
        )
        assert quote.status_code == 201

        response = await api_client.delete(f"{API}/clients/{client_entity.id}", headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["error_code"] == "CONFLICT_STATE"


class TestInvoiceFlow:
    """Factura con NCF, cobros y cancelación vía HTTP."""

    async def test_full_lifecycle(self, api_client, admin_headers, client_entity, vouchers):
        created = await api_client.post(
            f"{API}/invoices",
            headers=admin_headers,
            json={"client_id": str(client_entity.id), "requires_fiscal_voucher": True, "lines": [LINE]},
        )
        assert created.status_code == 201
        invoice = created.json()
        assert invoice["invoice_code"] == "FACTURA-000001"
        assert invoice["fiscal_voucher_number"] == "B0100000001"
        assert Decimal(invoice["grand_total"]) == Decimal("212.40")
        assert invoice["status"] == "Sent"

        paid = await api_client.post(
            f"{API}/invoices/{invoice['id']}/payments",
            headers=admin_headers,
            json={"amount": "100.00", "method": "Efectivo"},
        )
        assert paid.status_code == 201
        assert paid.json()["status"] == "PartiallyPaid"
        assert Decimal(paid.json()["balance_due"]) == Decimal("112.40")

        cancelled = await api_client.post(f"{API}/invoices/{invoice['id']}/cancel", headers=admin_headers)
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "Cancelled"
        assert cancelled.json()["fiscal_voucher_number"] is None

        available = await api_client.get(
            f"{API}/fiscal-vouchers", headers=admin_headers, params={"only_available": True}
        )
        assert [v["voucher_number"] for v in available.json()] == [
            "B0100000001",
            "B0100000002",
            "B0100000003",
        ]

        rejected = await api_client.post(
            f"{API}/invoices/{invoice['id']}/payments",
            headers=admin_headers,
            json={"amount": "10", "method": "Efectivo"},
        )
        assert rejected.status_code == 422
        assert rejected.json()["errors"] == ["No se pueden registrar pagos en una factura cancelada."]

    async def test_no_voucher_available(self, api_client, admin_headers, client_entity):
        response = await api_client.post(
            f"{API}/invoices",
            headers=admin_headers,
            json={"client_id": str(client_entity.id), "requires_fiscal_voucher": True, "lines": [LINE]},
        )

        assert response.status_code == 422
        assert response.json()["errors"] == ["No hay comprobantes fiscales disponibles."]

        listed = await api_client.get(f"{API}/invoices", headers=admin_headers)
        assert listed.json() == []

    async def test_status_filter(self, api_client, admin_headers, client_entity):
        for _ in range(2):
            await api_client.post(
                f"{API}/invoices",
                headers=admin_headers,
                json={"client_id": str(client_entity.id), "lines": [LINE]},
            )

        sent = await api_client.get(f"{API}/invoices", headers=admin_headers, params={"status": "Sent"})
        paid = await api_client.get(f"{API}/invoices", headers=admin_headers, params={"status": "Paid"})

        assert len(sent.json()) == 2
        assert paid.json() == []

    async def test_payment_rounding_to_zero_is_unprocessable(self, api_client, admin_headers, client_entity):
        invoice = (
            await api_client.post(
                f"{API}/invoices",
                headers=admin_headers,
                json={"client_id": str(client_entity.id), "lines": [LINE]},
            )
        ).json()

        response = await api_client.post(
            f"{API}/invoices/{invoice['id']}/payments",
            headers=admin_headers,
            json={"amount": "0.004", "method": "Efectivo"},
        )

        assert response.status_code == 422
        assert response.json()["errors"] == ["El monto del pago debe ser mayor que 0."]


class TestFiscalVouchers:
    """Alta de comprobantes vía HTTP."""

    async def test_create_then_duplicate_conflicts(self, api_client, admin_headers):
        body = {"voucher_number": "B0100000009", "voucher_type": "B01"}

        created = await api_client.post(f"{API}/fiscal-vouchers", headers=admin_headers, json=body)
        duplicate = await api_client.post(
            f"{API}/fiscal-vouchers", headers=admin_headers, json={"voucher_number": " B0100000009 "}
        )

        assert created.status_code == 201
        assert created.json()["is_used"] is False
        assert duplicate.status_code == 409
        assert duplicate.json()["error_code"] == "DUPLICATE_RESOURCE"

    async def test_empty_number_is_unprocessable(self, api_client, admin_headers):
        response = await api_client.post(f"{API}/fiscal-vouchers", headers=admin_headers, json={"voucher_number": ""})

        assert response.status_code == 422
        assert response.json()["errors"] == ["VoucherNumber es obligatorio."]

    async def test_plain_user_cannot_create(self, api_client, user_headers):
        response = await api_client.post(
            f"{API}/fiscal-vouchers", headers=user_headers, json={"voucher_number": "B0100000010"}
        )
        assert response.status_code == 403


class TestAssistantEndpoint:
    """Respuesta camelCase del asistente."""

    async def test_interpret_uses_camel_case(self, api_client):
        response = await api_client.post(
            f"{API}/assistant/interpret",
            json={"message": "quiero cotizar instalacion en 2do piso", "context": {"currentRoute": "/"}},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["intent"] == "create_quote"
        assert body["nextRoute"] == "/quotes/create.html"
        assert body["prefill"]["serviceType"] == "instalacion"
        assert body["prefill"]["workArea"] == "2do piso"
        assert "missingFields" in body

    @pytest.mark.parametrize("message", ["", "   "])
    async def test_empty_message_is_bad_request(self, api_client, message):
        response = await api_client.post(f"{API}/assistant/interpret", json={"message": message})

        assert response.status_code == 400
        body = response.json()
        assert body["ok"] is False
        assert body["assistantMessage"] == "Debes escribir un mensaje para continuar."


class TestHealth:
    async def test_health(self, api_client):
        response = await api_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestSeedAdmin:
    """Usuario administrador inicial."""

    async def test_creates_admin_once(self, db):
        settings = Settings(auth_seed_admin_password="semilla-segura")
        bootstrapper = AuthBootstrapper(settings)

        first = await bootstrapper.ensure_seed_admin(db)
        second = await bootstrapper.ensure_seed_admin(db)

        assert first.id == second.id
        assert first.role == "admin"
        assert verify_password("semilla-segura", first.hashed_password)

    async def test_reactivates_existing_user(self, db, session_factory, admin_user):
        async with session_factory() as session:
            user = await session.get(User, admin_user.id)
            user.is_active = False
            user.role = "user"
            await session.commit()

        user = await AuthBootstrapper(Settings()).ensure_seed_admin(db)

        assert user.is_active is True
        assert user.role == "admin"

    async def test_missing_password_fails(self, db):
        with pytest.raises(RuntimeError):
            await AuthBootstrapper(Settings()).ensure_seed_admin(db)
