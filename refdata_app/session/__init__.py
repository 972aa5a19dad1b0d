"""
Session lifecycle management for fetchers that need scraped credentials.

Sessions are acquired from an external source, validated field by field,
cached under a single key with a TTL, and invalidated when the upstream
API rejects them.
"""

from .cache import SessionCache
from .manager import SessionManager
from .models import FieldCheck, FieldStatus, Session, SessionField
from .validator import SessionValidator

__all__ = [
    "FieldCheck",
    "FieldStatus",
    "Session",
    "SessionCache",
    "SessionField",
    "SessionManager",
    "SessionValidator",
]
