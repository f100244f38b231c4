"""Points ledger - accrual, level computation and reward redemption"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from lending_gateway.domain.exceptions import ErrorKind, LendingError, validation_error
from lending_gateway.domain.gateway import PersistenceGateway
from lending_gateway.domain.models import Reward, RewardCategory, RewardRedemption, User
from lending_gateway.domain.resilience import ResilientExecutor
from lending_gateway.utils.date_utils import utc_now
from lending_gateway.utils.identifiers import new_id, redemption_code

POINTS_PER_LEVEL = 500

# Fixed awards granted after a successful primary action
PROFILE_UPDATE = "PROFILE_UPDATE"
ADDRESS_REGISTERED = "ADDRESS_REGISTERED"
GUARANTEE_REGISTERED = "GUARANTEE_REGISTERED"

POINT_AWARDS = {
    PROFILE_UPDATE: 10,
    ADDRESS_REGISTERED: 15,
    GUARANTEE_REGISTERED: 50,
}


def level_for_points(points: int, points_per_level: int = POINTS_PER_LEVEL) -> int:
    """Level 1 covers 0-499 points, level 2 covers 500-999, and so on"""
    return points // points_per_level + 1


class PointsLedger:
    """Sole writer of user points and level"""

    def __init__(
        self,
        gateway: PersistenceGateway,
        executor: ResilientExecutor,
        clock: Callable[[], datetime] = utc_now,
        code_generator: Callable[[], str] = redemption_code,
        points_per_level: int = POINTS_PER_LEVEL,
    ):
        self.gateway = gateway
        self.executor = executor
        self.clock = clock
        self.code_generator = code_generator
        self.points_per_level = points_per_level

    def _balance_changes(self, points: int) -> dict:
        return {"points": points, "level": level_for_points(points, self.points_per_level)}

    async def add_points(self, user_id: str, amount: int, reason: str) -> Optional[User]:
        """
        Best-effort accrual after an otherwise successful primary action.

        Failures are logged and swallowed on purpose: losing a few points must
        never roll back the action that earned them. Returns the updated user,
        or None when nothing was applied.
        """
        if amount <= 0:
            logging.warning(
                "Ignoring non-positive points award",
                extra={"step": "points_skipped", "user_id": user_id, "amount": amount, "reason": reason},
            )
            return None

        async def apply() -> User:
            async with self.gateway.transaction():
                user = await self.gateway.get(User, user_id)
                if user is None:
                    raise validation_error("User not found", user_id=user_id)

                updated = await self.gateway.update(
                    User,
                    user_id,
                    self._balance_changes(user.points + amount),
                    expected={"points": user.points},
                )
                if updated is None:
                    raise LendingError("Points balance changed concurrently", ErrorKind.SERVER)
                return updated

        try:
            updated = await self.executor.run(apply)
        except LendingError as e:
            logging.warning(
                f"Points accrual failed: {e}",
                extra={
                    "step": "points_failed",
                    "user_id": user_id,
                    "amount": amount,
                    "reason": reason,
                    "error_kind": e.kind.value,
                },
            )
            return None

        logging.info(
            f"Added {amount} points for {reason}",
            extra={"step": "points_added", "user_id": user_id, "points": updated.points, "level": updated.level},
        )
        return updated

    async def redeem_reward(self, user_id: str, reward_id: str) -> RewardRedemption:
        """
        Spend points on a reward.

        The debit and the redemption record are written in one unit of work
        that is retried as a whole. Id and code are generated up front so a
        retry after a lost commit finds the stored redemption and returns it
        instead of debiting twice.
        """
        reward = await self.executor.run(lambda: self.gateway.get(Reward, reward_id))
        if reward is None:
            raise validation_error("Reward not found", reward_id=reward_id)

        redemption = RewardRedemption(
            id=new_id(),
            user_id=user_id,
            reward_id=reward.id,
            redemption_date=self.clock(),
            code=self.code_generator(),
        )

        async def commit() -> RewardRedemption:
            async with self.gateway.transaction():
                existing = await self.gateway.get(RewardRedemption, redemption.id)
                if existing is not None:
                    return existing

                user = await self.gateway.get(User, user_id)
                if user is None:
                    raise validation_error("User not found", user_id=user_id)
                if user.points < reward.cost_points:
                    raise validation_error(
                        "Insufficient points",
                        available=user.points,
                        required=reward.cost_points,
                    )

                debited = await self.gateway.update(
                    User,
                    user_id,
                    self._balance_changes(user.points - reward.cost_points),
                    expected={"points": user.points},
                )
                if debited is None:
                    raise LendingError("Points balance changed concurrently", ErrorKind.SERVER)

                return await self.gateway.insert(redemption)

        stored = await self.executor.run(commit)
        logging.info(
            "Reward redeemed",
            extra={"step": "reward_redeemed", "user_id": user_id, "reward_id": reward.id, "redemption_id": stored.id},
        )
        return stored

    async def list_rewards(self) -> List[Reward]:
        return await self.executor.run(lambda: self.gateway.list(Reward))

    async def list_redemptions_for_user(self, user_id: str) -> List[RewardRedemption]:
        return await self.executor.run(lambda: self.gateway.list(RewardRedemption, user_id=user_id))


DEFAULT_REWARDS = [
    Reward(
        id="discount-10",
        title="10% Marketplace Discount",
        description="Discount voucher for partner stores.",
        cost_points=200,
        category=RewardCategory.DISCOUNT,
    ),
    Reward(
        id="cashback-25",
        title="25 Cashback",
        description="Credit applied to your next loan installment.",
        cost_points=500,
        category=RewardCategory.CASHBACK,
    ),
    Reward(
        id="financial-consulting",
        title="Financial Consulting",
        description="One hour with a financial specialist.",
        cost_points=1000,
        category=RewardCategory.CONSULTING,
    ),
    Reward(
        id="premium-badge",
        title="Premium Badge",
        description="Highlight your profile to lenders.",
        cost_points=1500,
        category=RewardCategory.PREMIUM,
    ),
]


async def seed_rewards(gateway: PersistenceGateway, rewards: List[Reward] = DEFAULT_REWARDS) -> int:
    """Insert catalogue rewards that are not stored yet; returns how many were added"""
    added = 0
    for reward in rewards:
        if await gateway.get(Reward, reward.id) is None:
            await gateway.insert(reward)
            added += 1
    return added
