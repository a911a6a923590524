"""SQLAlchemy Service Catalog Repository Implementation"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.catalog_repository import CatalogRepository
from src.domain.catalog import ResellerPricing, Service, ServicePlan


class SqlAlchemyCatalogRepository(CatalogRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_service(self, service_id: str) -> Optional[Service]:
        statement = select(Service).where(Service.id == service_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_plan(self, plan_id: str) -> Optional[ServicePlan]:
        statement = select(ServicePlan).where(ServicePlan.id == plan_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_reseller_pricing(self, admin_id: str, service_id: str) -> Optional[ResellerPricing]:
        statement = (
            select(ResellerPricing)
            .where(ResellerPricing.admin_id == admin_id)
            .where(ResellerPricing.service_id == service_id)
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()
