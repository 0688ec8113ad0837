import re
import secrets
from sqlalchemy import Column, String, DateTime, func

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-f]{24}$")


def generate_object_id() -> str:
    """24 hex character identifier, compatible with documents from the prescribing system"""
    return secrets.token_hex(12)


def is_valid_object_id(value) -> bool:
    return isinstance(value, str) and bool(OBJECT_ID_PATTERN.match(value))


# Base Mixin for document-style records
class ObjectIdMixin:
    id = Column(String(24), primary_key=True, default=generate_object_id)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
