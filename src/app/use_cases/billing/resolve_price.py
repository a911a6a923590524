"""ResolvePrice Use Case

Resolves the effective unit price and billing model for a service, an
optional plan and an optional reseller override. Read-only.
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.catalog_repository import CatalogRepository
from src.domain.pricing import ResolvedPrice, resolve_unit_price
from src.domain.catalog import ServicePlan
from .dtos import ResolvedPriceDTO
from .errors import ErrorCode

logger = logging.getLogger(__name__)


class ResolvePrice:
    """
    Use Case: Resolve unit price for (service, plan, reseller)

    Business Rules:
    1. Reseller custom price wins
    2. Else reseller markup over the service price
    3. Else the service price
    4. Service price is the plan's price_per_unit when a plan is attached,
       else the service base price
    5. Unknown service -> UNKNOWN_SERVICE; never fails for a known one
    """

    def __init__(self, catalog_repo: CatalogRepository):
        self.catalog_repo = catalog_repo

    async def resolve(
        self,
        service_id: str,
        plan_id: Optional[str] = None,
        reseller_id: Optional[str] = None,
    ) -> Result[ResolvedPrice]:
        service = await self.catalog_repo.get_service(service_id)
        if not service:
            return Return.err(
                Error(
                    code=ErrorCode.UNKNOWN_SERVICE,
                    message=f"Service {service_id} not found",
                    reason="Service reference is invalid",
                )
            )

        plan = await self._load_plan(service_id, plan_id)

        override = None
        if reseller_id:
            override = await self.catalog_repo.get_reseller_pricing(reseller_id, service_id)

        return Return.ok(resolve_unit_price(service, plan, override))

    async def execute(
        self,
        service_id: str,
        plan_id: Optional[str] = None,
        reseller_id: Optional[str] = None,
    ) -> Result[ResolvedPriceDTO]:
        try:
            result = await self.resolve(service_id, plan_id, reseller_id)
            if result.is_err():
                return result

            resolved = result.value
            return Return.ok(
                ResolvedPriceDTO(
                    service_id=service_id,
                    plan_id=plan_id,
                    reseller_id=reseller_id,
                    unit_price=resolved.unit_price,
                    billing_model=resolved.billing_model.value,
                    source=resolved.source.value,
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="RESOLVE_PRICE_FAILED",
                    message="Failed to resolve price",
                    reason=str(e),
                )
            )

    async def _load_plan(self, service_id: str, plan_id: Optional[str]) -> Optional[ServicePlan]:
        if not plan_id:
            return None

        plan = await self.catalog_repo.get_plan(plan_id)
        if plan is None or plan.service_id != service_id:
            logger.warning(
                f"Plan {plan_id} does not belong to service {service_id}, pricing without plan"
            )
            return None
        return plan
