"""Overdue Invoice Background Worker

Marks sent invoices past their due date as overdue.
"""

import asyncio
import logging
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.adapter.repositories.invoice_line_repository import SqlAlchemyInvoiceLineRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.billing import MarkInvoiceOverdue, MarkOverdueInvoices, OverdueSweepResultDTO

logger = logging.getLogger(__name__)


class OverdueInvoiceWorker:
    """
    Background worker for the overdue sweep

    Usage:
        worker = OverdueInvoiceWorker()
        result = await worker.run_once()

        await worker.run_forever(interval_seconds=86400)
    """

    def __init__(self, db_uri: str = None):
        self.db_uri = db_uri or ApplicationConfig.DB_URI

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("OverdueInvoiceWorker initialized")

    async def run_once(self) -> OverdueSweepResultDTO:
        if not ApplicationConfig.OVERDUE_SWEEP_ENABLED:
            logger.info("Overdue sweep is disabled, skipping")
            return OverdueSweepResultDTO(invoices_checked=0, invoices_marked_overdue=0)

        async with self.async_session_factory() as session:
            invoice_repo = SqlAlchemyInvoiceRepository(session)
            mark_overdue = MarkInvoiceOverdue(
                uow=SqlAlchemyUnitOfWork(session),
                invoice_repo=invoice_repo,
                invoice_line_repo=SqlAlchemyInvoiceLineRepository(session),
            )

            result = await MarkOverdueInvoices(invoice_repo, mark_overdue).execute()

            if result.is_err():
                logger.error(f"Overdue sweep failed: {result.error.message}")
                raise RuntimeError(f"Overdue sweep failed: {result.error.message}")

            return result.value

    async def run_forever(self, interval_seconds: int = 86400):
        logger.info(f"Starting continuous overdue sweep with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Overdue sweep cycle complete. Checked {result.invoices_checked}, "
                    f"marked {result.invoices_marked_overdue}"
                )
            except Exception as e:
                logger.error(f"Overdue sweep cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        await self.engine.dispose()
        logger.info("OverdueInvoiceWorker shutdown complete")


async def main():
    """
    Usage:
        python -m src.worker.invoice_overdue --once
        python -m src.worker.invoice_overdue --interval 3600
    """
    import argparse

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Overdue Invoice Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.OVERDUE_SWEEP_INTERVAL_SECONDS,
        help="Interval between runs in seconds"
    )
    args = parser.parse_args()

    worker = OverdueInvoiceWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print("Overdue sweep complete:")
            print(f"  Invoices checked: {result.invoices_checked}")
            print(f"  Marked overdue: {result.invoices_marked_overdue}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
