"""Service Catalog Repository Interface

Read-only view of services, plans and reseller price overrides.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.catalog import ResellerPricing, Service, ServicePlan


class CatalogRepository(ABC):

    @abstractmethod
    async def get_service(self, service_id: str) -> Optional[Service]:
        pass

    @abstractmethod
    async def get_plan(self, plan_id: str) -> Optional[ServicePlan]:
        pass

    @abstractmethod
    async def get_reseller_pricing(self, admin_id: str, service_id: str) -> Optional[ResellerPricing]:
        pass
