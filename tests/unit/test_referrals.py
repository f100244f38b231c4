"""Unit tests for referral invitations"""

import pytest
from lending_gateway.domain.exceptions import ErrorKind, LendingError
from lending_gateway.domain.models import Referral, ReferralStatus, User
from lending_gateway.domain.referrals import ReferralService


async def test_create_referral(referrals, add_user, gateway, clock):
    """Test an invitation is stored SENT with a normalized email"""
    await add_user("u1")

    referral = await referrals.create_referral("u1", "Bia Lima", " Bia@Example.com ")

    assert referral.status == ReferralStatus.SENT
    assert referral.referred_email == "bia@example.com"
    assert referral.referred_at == clock()
    assert await gateway.get(Referral, referral.id) == referral
    assert (await gateway.get(User, "u1")).points == 0


async def test_email_can_only_be_referred_once(referrals, add_user):
    """Test a second invitation to the same address fails for any sender"""
    await add_user("u1")
    await add_user("u2")
    await referrals.create_referral("u1", "Bia Lima", "bia@example.com")

    with pytest.raises(LendingError) as exc_info:
        await referrals.create_referral("u2", "Bia", "BIA@example.com")

    assert exc_info.value.kind == ErrorKind.VALIDATION
    assert exc_info.value.message == "Email already referred"


async def test_create_referral_requires_name(referrals, add_user):
    """Test blank names are rejected"""
    await add_user("u1")

    with pytest.raises(LendingError) as exc_info:
        await referrals.create_referral("u1", " ", "bia@example.com")

    assert exc_info.value.kind == ErrorKind.VALIDATION


async def test_create_referral_unknown_user(referrals):
    """Test invitations need an existing sender"""
    with pytest.raises(LendingError) as exc_info:
        await referrals.create_referral("missing", "Bia Lima", "bia@example.com")

    assert exc_info.value.kind == ErrorKind.VALIDATION


async def test_referral_replayed_after_lost_commit(flaky_gateway, executor, add_user, gateway, sleep):
    """Test a retry after a lost acknowledgement is not reported as a duplicate"""
    await add_user("u1")
    referrals = ReferralService(flaky_gateway, executor)
    flaky_gateway.lost_commits = 1

    referral = await referrals.create_referral("u1", "Bia Lima", "bia@example.com")

    assert await gateway.list(Referral, referred_email="bia@example.com") == [referral]
    assert sleep.delays == [1.0]


async def test_list_referrals_per_user(referrals, add_user):
    """Test senders only see their own invitations"""
    await add_user("u1")
    await add_user("u2")
    mine = await referrals.create_referral("u1", "Bia Lima", "bia@example.com")
    await referrals.create_referral("u2", "Caio Reis", "caio@example.com")

    assert await referrals.list_referrals("u1") == [mine]
