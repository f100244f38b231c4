"""Rewards catalogue and redemption endpoints"""

from typing import List

from fastapi import APIRouter, Depends

from lending_gateway.api.dependencies import get_ledger
from lending_gateway.api.v1.schemas import RedeemRequest, RedemptionResponse, RewardResponse
from lending_gateway.domain.ledger import PointsLedger
from lending_gateway.infrastructure.observability.metrics import redemption_counter

router = APIRouter()


@router.get("/rewards", response_model=List[RewardResponse])
async def list_rewards(ledger: PointsLedger = Depends(get_ledger)):
    rewards = await ledger.list_rewards()
    return [RewardResponse.model_validate(r) for r in rewards]


@router.post("/rewards/{reward_id}/redeem", response_model=RedemptionResponse, status_code=201)
async def redeem_reward(reward_id: str, body: RedeemRequest, ledger: PointsLedger = Depends(get_ledger)):
    """Spend points on a reward; 422 when the balance is too low"""
    redemption = await ledger.redeem_reward(body.user_id, reward_id)
    redemption_counter.labels(reward_id=reward_id).inc()
    return RedemptionResponse.model_validate(redemption)
