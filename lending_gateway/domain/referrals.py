"""Referrals: invitations sent to friends"""

import logging
from datetime import datetime
from typing import Callable, List

from lending_gateway.domain.exceptions import validation_error
from lending_gateway.domain.gateway import PersistenceGateway
from lending_gateway.domain.models import Referral, ReferralStatus, User
from lending_gateway.domain.resilience import ResilientExecutor
from lending_gateway.utils.date_utils import utc_now
from lending_gateway.utils.identifiers import new_id


class ReferralService:
    def __init__(
        self,
        gateway: PersistenceGateway,
        executor: ResilientExecutor,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.gateway = gateway
        self.executor = executor
        self.clock = clock

    async def create_referral(self, user_id: str, referred_name: str, referred_email: str) -> Referral:
        """
        Record an invitation in SENT status.

        An address can be referred only once across the platform. Retries
        replay the same pre-generated id, so a lost commit is not mistaken for
        a duplicate.
        """
        referred_email = referred_email.strip().lower()
        referred_name = referred_name.strip()
        if not referred_name:
            raise validation_error("Name of the referred person is required")

        user = await self.executor.run(lambda: self.gateway.get(User, user_id))
        if user is None:
            raise validation_error("User not found", user_id=user_id)

        referral = Referral(
            id=new_id(),
            user_id=user_id,
            referred_name=referred_name,
            referred_email=referred_email,
            status=ReferralStatus.SENT,
            referred_at=self.clock(),
        )

        async def commit() -> Referral:
            async with self.gateway.transaction():
                existing = await self.gateway.list(Referral, referred_email=referred_email)
                if any(r.id == referral.id for r in existing):
                    return referral
                if existing:
                    raise validation_error("Email already referred", referred_email=referred_email)
                return await self.gateway.insert(referral)

        stored = await self.executor.run(commit)

        logging.info(
            "Referral sent",
            extra={"step": "referral_sent", "user_id": user_id, "referral_id": stored.id},
        )
        return stored

    async def list_referrals(self, user_id: str) -> List[Referral]:
        referrals = await self.executor.run(lambda: self.gateway.list(Referral, user_id=user_id))
        return sorted(referrals, key=lambda r: r.referred_at, reverse=True)
