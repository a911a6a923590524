"""Usage Reset Sweep Background Worker

Proactively rolls usage counters over at period boundaries so dashboards
read fresh values even for subscriptions without traffic. Consumption
still resets lazily on its own; this worker is never required for
correctness.
"""

import asyncio
import logging
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.subscription_repository import SqlAlchemySubscriptionRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.billing import EnsureCurrentPeriod, SweepResets, ResetSweepResultDTO

logger = logging.getLogger(__name__)


class ResetSweepWorker:
    """
    Background worker for periodic usage resets

    Usage:
        worker = ResetSweepWorker()
        result = await worker.run_once()

        await worker.run_forever(interval_seconds=3600)
    """

    def __init__(self, db_uri: str = None):
        self.db_uri = db_uri or ApplicationConfig.DB_URI

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("ResetSweepWorker initialized")

    async def run_once(self) -> ResetSweepResultDTO:
        if not ApplicationConfig.RESET_SWEEP_ENABLED:
            logger.info("Reset sweep is disabled, skipping")
            return ResetSweepResultDTO(total_checked=0, resets_performed=0, failures=0, execution_time_ms=0)

        async with self.async_session_factory() as session:
            subscription_repo = SqlAlchemySubscriptionRepository(session)
            ensure_current = EnsureCurrentPeriod(
                uow=SqlAlchemyUnitOfWork(session),
                subscription_repo=subscription_repo,
                default_timezone=ApplicationConfig.DEFAULT_TIMEZONE,
                retry_attempts=int(ApplicationConfig.STORE_RETRY_ATTEMPTS),
                retry_min_wait=float(ApplicationConfig.STORE_RETRY_MIN_WAIT_SECONDS),
                retry_max_wait=float(ApplicationConfig.STORE_RETRY_MAX_WAIT_SECONDS),
            )

            result = await SweepResets(subscription_repo, ensure_current).execute()

            if result.is_err():
                logger.error(f"Reset sweep failed: {result.error.message}")
                raise RuntimeError(f"Reset sweep failed: {result.error.message}")

            return result.value

    async def run_forever(self, interval_seconds: int = 3600):
        logger.info(f"Starting continuous reset sweep with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Reset sweep cycle complete. Checked {result.total_checked}, "
                    f"reset {result.resets_performed}, failed {result.failures}"
                )
            except Exception as e:
                logger.error(f"Reset sweep cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        await self.engine.dispose()
        logger.info("ResetSweepWorker shutdown complete")


async def main():
    """
    Usage:
        python -m src.worker.reset_sweeper --once
        python -m src.worker.reset_sweeper --interval 900
    """
    import argparse

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Usage Reset Sweep Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.RESET_SWEEP_INTERVAL_SECONDS,
        help="Interval between runs in seconds"
    )
    args = parser.parse_args()

    worker = ResetSweepWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print("Reset sweep complete:")
            print(f"  Subscriptions checked: {result.total_checked}")
            print(f"  Resets performed: {result.resets_performed}")
            print(f"  Failures: {result.failures}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
