"""API tests for invoicing, invoice status changes and commission"""

import pytest
import pytest_asyncio
from datetime import datetime
from decimal import Decimal

from src.domain.catalog import BillingModel
from src.domain.usage_event import UsageEvent

GENERATE_BODY = {
    "reseller_id": "reseller_1",
    "client_id": "client_1",
    "period_start": "2024-01-01T00:00:00Z",
    "period_end": "2024-02-01T00:00:00Z",
}


@pytest_asyncio.fixture
async def january_usage(db_session, seed):
    subscription = seed["subscription"]
    for index, (quantity, recorded_at) in enumerate(
        [("10", datetime(2024, 1, 5)), ("20", datetime(2024, 1, 25))]
    ):
        db_session.add(
            UsageEvent(
                subscription_id=subscription.id,
                client_id=subscription.client_id,
                service_id=subscription.service_id,
                quantity=Decimal(quantity),
                unit_cost=Decimal("10.0000"),
                total_cost=Decimal(quantity) * Decimal("10"),
                billing_model=BillingModel.PER_MINUTE,
                idempotency_key=f"call_{index}",
                recorded_at=recorded_at,
            )
        )
    await db_session.commit()
    return subscription


@pytest.mark.asyncio
class TestGenerateInvoiceApi:

    async def test_generate_then_duplicate(self, client, january_usage):
        created = await client.post("/billing:generateInvoice", json=GENERATE_BODY)
        duplicate = await client.post("/billing:generateInvoice", json=GENERATE_BODY)

        assert created.status_code == 201
        invoice = created.json()
        assert invoice["status"] == "draft"
        assert Decimal(invoice["subtotal"]) == Decimal("300.00")
        assert Decimal(invoice["tax_amount"]) == Decimal("54.00")
        assert Decimal(invoice["total_amount"]) == Decimal("354.00")
        assert len(invoice["line_items"]) == 1
        assert invoice["line_items"][0]["description"] == "AI Voice Telecaller (per_minute)"

        assert duplicate.status_code == 409
        assert duplicate.json()["error"]["code"] == "DUPLICATE_INVOICE"

    async def test_inverted_window_is_422(self, client, january_usage):
        body = dict(GENERATE_BODY, period_start="2024-02-01T00:00:00Z", period_end="2024-01-01T00:00:00Z")

        response = await client.post("/billing:generateInvoice", json=body)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_BILLING_PERIOD"

    async def test_window_without_usage_is_422(self, client, seed):
        response = await client.post("/billing:generateInvoice", json=GENERATE_BODY)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "NO_BILLABLE_USAGE"


@pytest.mark.asyncio
class TestInvoiceLifecycleApi:

    async def test_send_pay_and_commission(self, client, january_usage):
        """
        Given: A generated January invoice of 354.00
        When: It is sent and paid on 2024-02-10
        Then: Commission at 15% is 53.10 for that invoice and for February
        """
        invoice_id = (await client.post("/billing:generateInvoice", json=GENERATE_BODY)).json()["invoice_id"]

        sent = await client.post("/billing:sendInvoice", json={"invoice_id": invoice_id})
        paid = await client.post(
            "/billing:markPaid",
            json={"invoice_id": invoice_id, "paid_at": "2024-02-10T10:00:00Z", "payment_method": "upi"},
        )

        assert sent.status_code == 200
        assert sent.json()["status"] == "sent"
        assert paid.status_code == 200
        assert paid.json()["status"] == "paid"
        assert paid.json()["paid_at"].startswith("2024-02-10T10:00:00")

        single = await client.get(
            f"/billing/invoices/{invoice_id}/commission", params={"reseller_id": "reseller_1"}
        )
        summary = await client.get(
            "/billing:commission",
            params={
                "reseller_id": "reseller_1",
                "period_start": "2024-02-01T00:00:00",
                "period_end": "2024-03-01T00:00:00",
            },
        )

        assert single.status_code == 200
        assert Decimal(single.json()["commission"]) == Decimal("53.10")
        assert summary.status_code == 200
        assert Decimal(summary.json()["total"]) == Decimal("53.10")
        assert summary.json()["invoice_count"] == 1

    async def test_invalid_transition_is_409(self, client, january_usage):
        invoice_id = (await client.post("/billing:generateInvoice", json=GENERATE_BODY)).json()["invoice_id"]

        response = await client.post("/billing:markPaid", json={"invoice_id": invoice_id})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_INVOICE_TRANSITION"

    async def test_commission_on_unpaid_invoice_is_400(self, client, january_usage):
        invoice_id = (await client.post("/billing:generateInvoice", json=GENERATE_BODY)).json()["invoice_id"]

        response = await client.get(
            f"/billing/invoices/{invoice_id}/commission", params={"reseller_id": "reseller_1"}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "COMMISSION_NOT_APPLICABLE"

    async def test_cancel_frees_the_window(self, client, january_usage):
        invoice_id = (await client.post("/billing:generateInvoice", json=GENERATE_BODY)).json()["invoice_id"]

        cancelled = await client.post("/billing:cancelInvoice", json={"invoice_id": invoice_id})
        regenerated = await client.post("/billing:generateInvoice", json=GENERATE_BODY)

        assert cancelled.json()["status"] == "cancelled"
        assert regenerated.status_code == 201


@pytest.mark.asyncio
class TestInvoiceReadApi:

    async def test_get_invoice_and_pdf(self, client, january_usage):
        invoice_id = (await client.post("/billing:generateInvoice", json=GENERATE_BODY)).json()["invoice_id"]

        invoice = await client.get(f"/billing/invoices/{invoice_id}")
        pdf = await client.get(f"/billing/invoices/{invoice_id}/pdf")
        encoded = await client.get(f"/billing/invoices/{invoice_id}/pdf/base64")

        assert invoice.status_code == 200
        assert invoice.json()["invoice_id"] == invoice_id
        assert pdf.status_code == 200
        assert pdf.headers["content-type"] == "application/pdf"
        assert pdf.content.startswith(b"%PDF")
        assert encoded.status_code == 200
        assert encoded.json()["status"] == "draft"

    async def test_missing_invoice_is_404(self, client, seed):
        response = await client.get("/billing/invoices/9999")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "INVOICE_NOT_FOUND"


@pytest.mark.asyncio
class TestResolvePriceApi:

    async def test_base_price(self, client, seed):
        response = await client.get("/billing:resolvePrice", params={"service_id": "svc_voice"})

        assert response.status_code == 200
        assert Decimal(response.json()["unit_price"]) == Decimal("10")
        assert response.json()["source"] == "base"

    async def test_unknown_service_is_404(self, client, seed):
        response = await client.get("/billing:resolvePrice", params={"service_id": "svc_missing"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "UNKNOWN_SERVICE"
