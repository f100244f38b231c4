"""Guarantees (collateral) pledged by users"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional

from lending_gateway.domain.amortization import Number, to_decimal
from lending_gateway.domain.exceptions import validation_error
from lending_gateway.domain.gateway import PersistenceGateway, insert_once
from lending_gateway.domain.ledger import GUARANTEE_REGISTERED, POINT_AWARDS, PointsLedger
from lending_gateway.domain.models import Guarantee, GuaranteeStatus, GuaranteeType, User
from lending_gateway.domain.resilience import ResilientExecutor
from lending_gateway.utils.date_utils import utc_now
from lending_gateway.utils.identifiers import new_id


class GuaranteeService:
    def __init__(
        self,
        gateway: PersistenceGateway,
        executor: ResilientExecutor,
        ledger: PointsLedger,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.gateway = gateway
        self.executor = executor
        self.ledger = ledger
        self.clock = clock

    async def register_guarantee(
        self,
        user_id: str,
        guarantee_type: GuaranteeType,
        description: str,
        estimated_value: Number,
        wants_to_sell: bool = False,
        sale_price: Optional[Number] = None,
        details: str = "",
    ) -> Guarantee:
        """
        Store a new guarantee as PENDING verification and award guarantee points.

        The points award is best effort and never undoes the registration.
        """
        estimated_value = to_decimal(estimated_value)
        if estimated_value <= 0:
            raise validation_error("Estimated value must be greater than zero", estimated_value=str(estimated_value))

        price: Optional[Decimal] = None
        if wants_to_sell:
            if sale_price is None or to_decimal(sale_price) <= 0:
                raise validation_error("A sale price is required when the asset is for sale")
            price = to_decimal(sale_price)

        description = description.strip()
        if not description:
            raise validation_error("Description is required")

        user = await self.executor.run(lambda: self.gateway.get(User, user_id))
        if user is None:
            raise validation_error("User not found", user_id=user_id)

        guarantee = Guarantee(
            id=new_id(),
            user_id=user_id,
            guarantee_type=GuaranteeType(guarantee_type),
            description=description,
            estimated_value=estimated_value,
            status=GuaranteeStatus.PENDING,
            created_at=self.clock(),
            wants_to_sell=wants_to_sell,
            sale_price=price,
            details=details.strip(),
        )
        stored = await self.executor.run(lambda: insert_once(self.gateway, guarantee))

        logging.info(
            "Guarantee registered",
            extra={
                "step": "guarantee_registered",
                "user_id": user_id,
                "guarantee_id": stored.id,
                "guarantee_type": stored.guarantee_type.value,
            },
        )

        await self.ledger.add_points(user_id, POINT_AWARDS[GUARANTEE_REGISTERED], GUARANTEE_REGISTERED)
        return stored

    async def list_guarantees(self, user_id: str) -> List[Guarantee]:
        guarantees = await self.executor.run(lambda: self.gateway.list(Guarantee, user_id=user_id))
        return sorted(guarantees, key=lambda g: g.created_at, reverse=True)
