"""Unit tests for GenerateInvoice use case

Tests cover:
- Line grouping by service and snapshotted unit price
- Subtotal, tax and total arithmetic
- One active invoice per (reseller, client, window)
- Window, ownership and empty-usage rejections
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy.exc import IntegrityError

from src.adapter.services.tax_policy import FlatRateTaxPolicy, ZeroTaxPolicy
from src.app.use_cases.billing.dtos import GenerateInvoiceCommandDTO
from src.app.use_cases.billing.errors import ErrorCode
from src.app.use_cases.billing.generate_invoice import GenerateInvoice
from src.domain.catalog import BillingModel, Service, ServiceCategory
from src.domain.directory import Client
from src.domain.invoice import period_key
from src.domain.usage_event import UsageEvent

PERIOD_START = datetime(2024, 2, 1)
PERIOD_END = datetime(2024, 3, 1)


def usage(service_id, quantity, unit_cost, billing_model=BillingModel.PER_MINUTE):
    quantity, unit_cost = Decimal(quantity), Decimal(unit_cost)
    return UsageEvent(
        subscription_id=1,
        client_id="client_1",
        service_id=service_id,
        quantity=quantity,
        unit_cost=unit_cost,
        total_cost=quantity * unit_cost,
        billing_model=billing_model,
        idempotency_key=f"{service_id}:{quantity}:{unit_cost}",
        recorded_at=datetime(2024, 2, 10),
    )


@pytest.fixture
def mock_invoice_repo():
    repo = MagicMock()
    repo.exists_active_for_period = AsyncMock(return_value=False)
    repo.generate_invoice_number = AsyncMock(return_value="INV-2024-000001")

    async def _create(invoice):
        invoice.id = 1
        return invoice

    repo.create = AsyncMock(side_effect=_create)
    return repo


@pytest.fixture
def mock_invoice_line_repo():
    repo = MagicMock()

    async def _create_many(lines):
        for index, line in enumerate(lines, start=1):
            line.id = index
        return lines

    repo.create_many = AsyncMock(side_effect=_create_many)
    return repo


@pytest.fixture
def catalog_with_sms(mock_catalog_repo, voice_service):
    sms = Service(
        id="svc_sms",
        name="Bulk SMS",
        category=ServiceCategory.MESSAGING,
        pricing_model=BillingModel.PER_MESSAGE,
        base_price=Decimal("0.25"),
    )
    services = {"svc_voice": voice_service, "svc_sms": sms}
    mock_catalog_repo.get_service = AsyncMock(side_effect=lambda service_id: services.get(service_id))
    return mock_catalog_repo


@pytest.fixture
def generate_use_case(
    mock_uow, mock_invoice_repo, mock_invoice_line_repo, mock_event_repo, catalog_with_sms, mock_directory_repo
):
    return GenerateInvoice(
        uow=mock_uow,
        invoice_repo=mock_invoice_repo,
        invoice_line_repo=mock_invoice_line_repo,
        event_repo=mock_event_repo,
        catalog_repo=catalog_with_sms,
        directory_repo=mock_directory_repo,
        tax_policy=FlatRateTaxPolicy(Decimal("18")),
    )


@pytest.fixture
def sample_command():
    return GenerateInvoiceCommandDTO(
        reseller_id="reseller_1",
        client_id="client_1",
        period_start=PERIOD_START,
        period_end=PERIOD_END,
    )


@pytest.mark.asyncio
class TestGenerateInvoiceSuccess:

    async def test_lines_grouped_by_service_and_price(
        self, generate_use_case, mock_event_repo, mock_invoice_repo, mock_invoice_line_repo, mock_uow,
        sample_command, now,
    ):
        """
        Given: Voice usage at two prices and SMS usage in February
        When: Invoice generated for February
        Then: One line per (service, price), totals exact, status draft
        """
        mock_event_repo.list_for_client = AsyncMock(
            return_value=[
                usage("svc_voice", "10", "12.0000"),
                usage("svc_sms", "100", "0.3333", BillingModel.PER_MESSAGE),
                usage("svc_voice", "3", "13.0000"),
                usage("svc_voice", "5", "12.0000"),
            ]
        )

        result = await generate_use_case.execute(sample_command, now=now)

        assert result.is_ok()
        invoice = result.value
        assert invoice.status == "draft"
        assert invoice.invoice_number == "INV-2024-000001"
        assert invoice.reseller_id == "reseller_1"

        lines = [(l.description, l.quantity, l.unit_price, l.total_price) for l in invoice.line_items]
        assert lines == [
            ("Bulk SMS (per_message)", Decimal("100"), Decimal("0.3333"), Decimal("33.33")),
            ("AI Voice Telecaller (per_minute)", Decimal("15"), Decimal("12.0000"), Decimal("180.00")),
            ("AI Voice Telecaller (per_minute)", Decimal("3"), Decimal("13.0000"), Decimal("39.00")),
        ]

        assert invoice.subtotal == Decimal("252.33")
        assert invoice.tax_amount == Decimal("45.42")
        assert invoice.total_amount == Decimal("297.75")
        assert invoice.subtotal == sum(l.total_price for l in invoice.line_items)
        assert invoice.total_amount == invoice.subtotal + invoice.tax_amount

        assert invoice.invoice_date == date(2024, 3, 14)
        assert invoice.due_date == date(2024, 4, 13)

        mock_event_repo.list_for_client.assert_called_once_with("client_1", PERIOD_START, PERIOD_END)
        mock_invoice_repo.generate_invoice_number.assert_called_once_with(2024)
        created = mock_invoice_repo.create.call_args[0][0]
        assert created.period_key == period_key("reseller_1", "client_1", PERIOD_START, PERIOD_END)
        assert all(line.invoice_id == 1 for line in mock_invoice_line_repo.create_many.call_args[0][0])
        mock_uow.commit.assert_called_once()

    async def test_zero_tax_policy(self, generate_use_case, mock_event_repo, sample_command, now):
        generate_use_case.tax_policy = ZeroTaxPolicy()
        mock_event_repo.list_for_client = AsyncMock(return_value=[usage("svc_voice", "2", "10.0000")])

        result = await generate_use_case.execute(sample_command, now=now)

        assert result.value.tax_amount == Decimal("0.00")
        assert result.value.total_amount == Decimal("20.00")


@pytest.mark.asyncio
class TestGenerateInvoiceRejections:

    async def test_duplicate_window(
        self, generate_use_case, mock_invoice_repo, mock_event_repo, sample_command, now
    ):
        """
        Given: A non-cancelled invoice already covers the window
        When: Generation is requested again
        Then: DUPLICATE_INVOICE, nothing written
        """
        mock_invoice_repo.exists_active_for_period = AsyncMock(return_value=True)
        mock_event_repo.list_for_client = AsyncMock()

        result = await generate_use_case.execute(sample_command, now=now)

        assert result.is_err()
        assert result.error.code == ErrorCode.DUPLICATE_INVOICE
        mock_event_repo.list_for_client.assert_not_called()
        mock_invoice_repo.create.assert_not_called()

    async def test_concurrent_generation_loses_on_unique_key(
        self, generate_use_case, mock_invoice_repo, mock_event_repo, mock_uow, sample_command, now
    ):
        mock_event_repo.list_for_client = AsyncMock(return_value=[usage("svc_voice", "1", "10.0000")])
        mock_invoice_repo.create = AsyncMock(side_effect=IntegrityError("insert", {}, Exception("unique")))
        mock_invoice_repo.exists_active_for_period = AsyncMock(side_effect=[False, True])

        result = await generate_use_case.execute(sample_command, now=now)

        assert result.is_err()
        assert result.error.code == ErrorCode.DUPLICATE_INVOICE
        mock_uow.rollback.assert_called_once()

    @pytest.mark.parametrize(
        "start,end",
        [
            (datetime(2024, 3, 1), datetime(2024, 2, 1)),
            (datetime(2024, 2, 1), datetime(2024, 2, 1)),
            (datetime(2024, 3, 1), datetime(2024, 4, 1)),
        ],
    )
    async def test_invalid_window(self, generate_use_case, mock_directory_repo, start, end, now):
        command = GenerateInvoiceCommandDTO(
            reseller_id="reseller_1", client_id="client_1", period_start=start, period_end=end
        )

        result = await generate_use_case.execute(command, now=now)

        assert result.is_err()
        assert result.error.code == ErrorCode.INVALID_BILLING_PERIOD
        mock_directory_repo.get_reseller.assert_not_called()

    async def test_client_of_another_reseller(
        self, generate_use_case, mock_directory_repo, sample_command, now
    ):
        mock_directory_repo.get_client = AsyncMock(
            return_value=Client(id="client_1", admin_id="reseller_2", company_name="Other")
        )

        result = await generate_use_case.execute(sample_command, now=now)

        assert result.is_err()
        assert result.error.code == ErrorCode.CLIENT_NOT_FOUND

    async def test_unknown_reseller(self, generate_use_case, mock_directory_repo, sample_command, now):
        mock_directory_repo.get_reseller = AsyncMock(return_value=None)

        result = await generate_use_case.execute(sample_command, now=now)

        assert result.is_err()
        assert result.error.code == ErrorCode.RESELLER_NOT_FOUND

    async def test_no_usage_in_window(
        self, generate_use_case, mock_event_repo, mock_invoice_repo, sample_command, now
    ):
        mock_event_repo.list_for_client = AsyncMock(return_value=[])

        result = await generate_use_case.execute(sample_command, now=now)

        assert result.is_err()
        assert result.error.code == ErrorCode.NO_BILLABLE_USAGE
        mock_invoice_repo.create.assert_not_called()
