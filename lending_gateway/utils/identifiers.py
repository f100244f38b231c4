"""Identifier and code generation"""

import secrets
import string
import uuid

REDEMPTION_CODE_ALPHABET = string.ascii_uppercase + string.digits


def new_id() -> str:
    return str(uuid.uuid4())


def redemption_code(length: int = 8) -> str:
    """Short human-typeable voucher code"""
    return "".join(secrets.choice(REDEMPTION_CODE_ALPHABET) for _ in range(length))
