"""
Session parsing and validation.

A raw session is a cookie-header style string::

    AKA_A2=A; bm_sv=abc; Expires=Wed, 21-Oct-2026 07:28:00 GMT; nseappid=<jwt>

``Expires`` and ``Max-Age`` segments apply to the field right before them.
JWT fields take their expiry from the ``exp`` claim of the payload.
"""

import base64
import binascii
import json
import re
from datetime import UTC, datetime, timedelta
from typing import Iterable, Optional

import structlog

from ..errors import CookieError
from ..utils.time import ensure_utc, utc_now
from .models import FieldCheck, Session, SessionField

logger = structlog.get_logger(__name__)

JWT_PATTERN = re.compile(r"^([^.]+)\.([^.]+)\.([^.]+)$")
INVALID_MARKERS = ("expired", "invalid")
EXPIRES_FORMATS = (
    "%a, %d-%b-%Y %H:%M:%S %Z",
    "%a, %d %b %Y %H:%M:%S %Z",
)
IGNORED_ATTRIBUTES = {"path", "domain", "samesite", "secure", "httponly"}

# Cookies the NSE website sets on a successful page load
DEFAULT_REQUIRED_FIELDS = (
    "AKA_A2",
    "ak_bmsc",
    "bm_mi",
    "bm_sv",
    "bm_sz",
    "nsit",
    "nseappid",
)
DEFAULT_JWT_FIELDS = ("nseappid",)


def parse_expires(value: str) -> Optional[datetime]:
    """Parse an ``Expires`` attribute into a UTC datetime, None if unparseable."""
    value = value.strip()
    for fmt in EXPIRES_FORMATS:
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=UTC)
        except ValueError:
            continue
    logger.debug("Could not parse expiry date", value=value)
    return None


def decode_jwt_payload(token: str) -> dict:
    """
    Decode the payload segment of a JWT without verifying its signature.

    Raises:
        ValueError: Token is not a three-part JWT or the payload is not a JSON object
    """
    match = JWT_PATTERN.match(token)
    if not match:
        raise ValueError("Invalid JWT format")

    segment = match.group(2)
    padded = segment + "=" * (-len(segment) % 4)
    try:
        decoded = base64.urlsafe_b64decode(padded.encode("ascii"))
        payload = json.loads(decoded)
    except (binascii.Error, UnicodeError, json.JSONDecodeError) as e:
        raise ValueError(f"Invalid JWT encoding: {e}") from e

    if not isinstance(payload, dict):
        raise ValueError("JWT payload is not an object")
    return payload


def expiry_from_claims(payload: dict) -> Optional[datetime]:
    """
    The ``exp`` claim as a UTC datetime, None when absent or not numeric.

    Raises:
        ValueError: ``exp`` is outside the platform's timestamp range
    """
    exp = payload.get("exp")
    if not isinstance(exp, (int, float)) or isinstance(exp, bool):
        return None
    try:
        return datetime.fromtimestamp(exp, tz=UTC)
    except (OverflowError, OSError, ValueError) as e:
        raise ValueError(f"JWT exp claim out of range: {exp}") from e


def jwt_expiry(token: str) -> Optional[datetime]:
    """Expiry from a JWT ``exp`` claim, None when absent or undecodable."""
    try:
        return expiry_from_claims(decode_jwt_payload(token))
    except ValueError:
        return None


class SessionValidator:
    """Validates the required fields of a session."""

    def __init__(
        self,
        required_fields: Iterable[str] = DEFAULT_REQUIRED_FIELDS,
        jwt_fields: Iterable[str] = DEFAULT_JWT_FIELDS,
    ):
        self.required_fields = tuple(required_fields)
        self.jwt_fields = frozenset(jwt_fields)
        self.logger = logger

    def parse(self, raw_value: str, acquired_at: Optional[datetime] = None) -> Session:
        """
        Decompose a raw session string into named fields.

        Args:
            raw_value: Cookie-header style session string
            acquired_at: When the session was acquired; anchors ``Max-Age``

        Returns:
            Immutable Session

        Raises:
            CookieError: The raw value is empty
        """
        if not raw_value or not raw_value.strip():
            raise CookieError("Empty session value provided for validation")

        acquired_at = ensure_utc(acquired_at) if acquired_at else utc_now()
        fields: dict[str, SessionField] = {}
        previous: Optional[str] = None

        for segment in raw_value.split(";"):
            segment = segment.strip()
            if "=" not in segment:
                continue

            name, value = (part.strip() for part in segment.split("=", 1))
            attribute = name.lower()

            if attribute == "expires" and previous is not None:
                expires_at = parse_expires(value)
                if expires_at is not None:
                    fields[previous] = self._with_expiry(fields[previous], expires_at)
            elif attribute == "max-age" and previous is not None:
                try:
                    expires_at = acquired_at + timedelta(seconds=int(value))
                except (ValueError, OverflowError):
                    self.logger.debug("Could not parse max-age", field=previous, value=value)
                    continue
                fields[previous] = self._with_expiry(fields[previous], expires_at)
            elif attribute in IGNORED_ATTRIBUTES:
                continue
            else:
                expires_at = jwt_expiry(value) if name in self.jwt_fields else None
                fields[name] = SessionField(name=name, value=value, expires_at=expires_at)
                previous = name

        return Session(raw_value=raw_value, acquired_at=acquired_at, fields=fields)

    def check_field(self, session_field: SessionField, now: Optional[datetime] = None) -> FieldCheck:
        """Format and expiry check for one field."""
        now = now or utc_now()
        value = session_field.value

        if not value:
            return FieldCheck.invalid("Empty value")

        if session_field.name in self.jwt_fields:
            try:
                expiry_from_claims(decode_jwt_payload(value))
            except ValueError as e:
                return FieldCheck.invalid(str(e))
        elif any(marker in value for marker in INVALID_MARKERS):
            return FieldCheck.invalid("Contains invalid markers")

        expires_at = session_field.expires_at
        if expires_at is not None and expires_at <= now:
            return FieldCheck.expired(expires_at)

        return FieldCheck.valid(expires_at)

    def validate(self, session: Session, now: Optional[datetime] = None) -> dict[str, FieldCheck]:
        """Check every required field; absent ones are reported as missing."""
        now = now or utc_now()
        results: dict[str, FieldCheck] = {}

        for name in self.required_fields:
            session_field = session.get(name)
            if session_field is None:
                results[name] = FieldCheck.missing()
            else:
                results[name] = self.check_field(session_field, now)

        return results

    def invalid_fields(self, session: Session, now: Optional[datetime] = None) -> dict[str, str]:
        """Required fields that fail their check, mapped to the reason."""
        return {
            name: check.message
            for name, check in self.validate(session, now).items()
            if not check.is_valid
        }

    def expiring_fields(
        self,
        session: Session,
        threshold_minutes: float,
        now: Optional[datetime] = None,
    ) -> list[str]:
        """Required fields that expire within ``threshold_minutes`` of ``now``."""
        now = now or utc_now()
        margin = timedelta(minutes=threshold_minutes)
        expiring = []

        for name in self.required_fields:
            session_field = session.get(name)
            if session_field is None or session_field.expires_at is None:
                continue
            if session_field.expires_at - margin <= now:
                expiring.append(name)

        return expiring

    def needs_refresh(
        self,
        session: Optional[Session],
        threshold_minutes: float,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Decide whether a new session must be acquired.

        True iff there is no session, any required field fails its format
        check, or any required field expires within the threshold.
        """
        if session is None:
            return True

        now = now or utc_now()
        invalid = self.invalid_fields(session, now)
        if invalid:
            self.logger.info("Session has invalid required fields", fields=sorted(invalid))
            return True

        expiring = self.expiring_fields(session, threshold_minutes, now)
        if expiring:
            self.logger.info("Session fields expiring soon", fields=expiring,
                             threshold_minutes=threshold_minutes)
            return True

        return False

    @staticmethod
    def _with_expiry(session_field: SessionField, expires_at: datetime) -> SessionField:
        if session_field.expires_at is not None:
            expires_at = min(expires_at, session_field.expires_at)
        return SessionField(name=session_field.name, value=session_field.value, expires_at=expires_at)
