"""User registration, profile maintenance and postal address"""

import logging
import re
from datetime import datetime
from typing import Callable, Optional

from lending_gateway.domain.exceptions import validation_error
from lending_gateway.domain.gateway import PersistenceGateway
from lending_gateway.domain.ledger import ADDRESS_REGISTERED, POINT_AWARDS, PROFILE_UPDATE, PointsLedger
from lending_gateway.domain.models import Address, User
from lending_gateway.domain.resilience import ResilientExecutor
from lending_gateway.utils.date_utils import utc_now
from lending_gateway.utils.identifiers import new_id

# Points and level are ledger-owned and never editable through the profile
EDITABLE_FIELDS = frozenset({"full_name", "tax_id", "phone"})


class ProfileService:
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

    async def register_user(self, email: str, full_name: str, tax_id: str = "", phone: str = "") -> User:
        email = email.strip().lower()
        existing = await self.executor.run(lambda: self.gateway.list(User, email=email))
        if existing:
            raise validation_error("Email already registered", email=email)

        user = User(
            id=new_id(),
            email=email,
            full_name=full_name,
            tax_id=tax_id,
            phone=phone,
            created_at=self.clock(),
        )
        return await self.executor.run(lambda: self.gateway.insert(user))

    async def get_user(self, user_id: str) -> User:
        user = await self.executor.run(lambda: self.gateway.get(User, user_id))
        if user is None:
            raise validation_error("User not found", user_id=user_id)
        return user

    async def update_profile(self, user_id: str, **changes: Optional[str]) -> User:
        """
        Save profile fields, then award profile-update points.

        The points award is best effort: a ledger failure leaves the saved
        profile in place and is only logged.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise validation_error(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        values = {k: v for k, v in changes.items() if v is not None}
        if not values:
            return await self.get_user(user_id)

        updated = await self.executor.run(lambda: self.gateway.update(User, user_id, values))
        if updated is None:
            raise validation_error("User not found", user_id=user_id)

        logging.info(
            "Profile updated",
            extra={"step": "profile_updated", "user_id": user_id, "fields": sorted(values)},
        )

        awarded = await self.ledger.add_points(user_id, POINT_AWARDS[PROFILE_UPDATE], PROFILE_UPDATE)
        return awarded or updated

    async def get_address(self, user_id: str) -> Optional[Address]:
        addresses = await self.executor.run(lambda: self.gateway.list(Address, user_id=user_id))
        return addresses[0] if addresses else None

    async def save_address(
        self,
        user_id: str,
        postal_code: str,
        street: str,
        number: str,
        district: str,
        city: str,
        state: str,
        complement: str = "",
    ) -> Address:
        """
        Create or replace the user's single address.

        The first registration earns address points (best effort); later
        edits only overwrite the stored fields.
        """
        await self.get_user(user_id)

        digits = re.sub(r"\D", "", postal_code)
        if len(digits) != 8:
            raise validation_error("Postal code must have 8 digits", postal_code=postal_code)
        state = state.strip().upper()
        if not re.fullmatch(r"[A-Z]{2}", state):
            raise validation_error("State must be a two-letter code", state=state)

        fields = {
            "postal_code": digits,
            "street": street.strip(),
            "number": number.strip(),
            "district": district.strip(),
            "city": city.strip(),
            "state": state,
            "complement": complement.strip(),
        }
        missing = sorted(name for name, value in fields.items() if name != "complement" and not value)
        if missing:
            raise validation_error(f"Required address fields: {', '.join(missing)}")

        candidate = Address(id=new_id(), user_id=user_id, **fields)

        async def upsert() -> Address:
            async with self.gateway.transaction():
                existing = await self.gateway.list(Address, user_id=user_id)
                if not existing:
                    return await self.gateway.insert(candidate)
                return await self.gateway.update(Address, existing[0].id, fields)

        saved = await self.executor.run(upsert)
        first_registration = saved.id == candidate.id

        logging.info(
            "Address saved",
            extra={"step": "address_saved", "user_id": user_id, "first_registration": first_registration},
        )

        if first_registration:
            await self.ledger.add_points(user_id, POINT_AWARDS[ADDRESS_REGISTERED], ADDRESS_REGISTERED)
        return saved
