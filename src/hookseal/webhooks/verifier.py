"""Webhook signature validation.

Authenticates inbound webhooks signed with HMAC-SHA256 over the raw request
body and bounded by a freshness window on a signed-at timestamp header.

Security Features:
- MAC computed over the literal body bytes, never a re-serialized object
- Constant-time signature comparison
- Absolute freshness window (stale and future timestamps both rejected)
- Secret and MACs kept out of logs unless debug is explicitly enabled

Usage:
    from hookseal.webhooks import SignatureValidator

    validator = SignatureValidator(secret=b"my-webhook-secret")
    result = validator.validate(request_body, request_headers)

    if result:
        process(result.payload)
    else:
        print(f"Rejected: {result.reason.value}")
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog

from hookseal.core.clock import Clock, SystemClock, ensure_utc

if TYPE_CHECKING:
    from hookseal.core.config import ValidatorSettings

logger = structlog.get_logger()

DEFAULT_MAX_AGE_SECONDS = 300.0
DEFAULT_SIGNATURE_HEADER = "x-signature"
DEFAULT_TIMESTAMP_HEADER = "x-timestamp"

_PREVIEW_LENGTH = 200


class SignatureEncoding(str, Enum):
    """Text encoding of the HMAC digest carried in the signature header."""

    BASE64 = "base64"
    HEX = "hex"


class RejectionReason(Enum):
    """Why a webhook was rejected."""

    MISSING_SIGNATURE = "missing_signature"
    MISSING_TIMESTAMP = "missing_timestamp"
    INVALID_TIMESTAMP = "invalid_timestamp"
    STALE_OR_FUTURE_TIMESTAMP = "stale_or_future_timestamp"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    SIGNATURE_MISMATCH = "signature_mismatch"
    MALFORMED_PAYLOAD = "malformed_payload"

    @property
    def http_status(self) -> int:
        """Conventional HTTP status for responding to the sender."""
        if self is RejectionReason.MALFORMED_PAYLOAD:
            return 400
        if self is RejectionReason.PAYLOAD_TOO_LARGE:
            return 413
        return 401


@dataclass(frozen=True)
class Accepted:
    """An authenticated, fresh webhook."""

    payload: Any
    """Body parsed as JSON after authentication succeeded."""

    received_at: datetime
    """Instant the request was validated."""

    age_seconds: float | None
    """Absolute distance between the signed timestamp and received_at.

    None only when the timestamp header was absent and not required.
    """

    @property
    def accepted(self) -> bool:
        return True

    def __bool__(self) -> bool:
        return True

    def enriched(self) -> dict[str, Any]:
        """Payload merged with validation metadata for downstream consumers.

        Object payloads are copied and extended; any other JSON value is
        nested under ``payload``.
        """
        if isinstance(self.payload, dict):
            data = dict(self.payload)
        else:
            data = {"payload": self.payload}
        data["validated_at"] = self.received_at.isoformat()
        data["webhook_age"] = self.age_seconds
        data["hmac_validated"] = True
        return data


@dataclass(frozen=True)
class Rejected:
    """A webhook that failed validation."""

    reason: RejectionReason
    age_seconds: float | None = None
    detail: str = ""

    @property
    def accepted(self) -> bool:
        return False

    def __bool__(self) -> bool:
        return False


ValidationResult = Accepted | Rejected


def compute_signature(
    secret: bytes | str,
    payload: bytes,
    encoding: SignatureEncoding | str = SignatureEncoding.BASE64,
) -> str:
    """Compute the HMAC-SHA256 signature of a payload.

    Args:
        secret: Shared secret. Strings are UTF-8 encoded.
        payload: The exact bytes to sign.
        encoding: Text encoding of the digest.

    Returns:
        Encoded signature string.
    """
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    digest = hmac.new(secret, payload, hashlib.sha256).digest()
    if SignatureEncoding(encoding) is SignatureEncoding.HEX:
        return digest.hex()
    return base64.b64encode(digest).decode("ascii")


def constant_time_compare(a: str, b: str) -> bool:
    """Compare two signatures in constant time.

    Running time does not depend on the position of the first differing
    byte. Inputs of different lengths compare unequal without revealing
    anything beyond their lengths.
    """
    return hmac.compare_digest(
        a.encode("utf-8", "surrogatepass"),
        b.encode("utf-8", "surrogatepass"),
    )


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 instant into an aware UTC datetime.

    A trailing ``Z`` is accepted and naive values are taken as UTC.

    Raises:
        ValueError: If the value is not ISO-8601.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def get_header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup."""
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


class SignatureValidator:
    """Validates HMAC-SHA256 signed webhooks with a freshness window.

    Every call is independent: the validator holds only read-only
    configuration, the secret, and a clock.
    """

    def __init__(
        self,
        secret: bytes | str,
        *,
        signature_header_name: str = DEFAULT_SIGNATURE_HEADER,
        timestamp_header_name: str = DEFAULT_TIMESTAMP_HEADER,
        max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
        signature_encoding: SignatureEncoding | str = SignatureEncoding.BASE64,
        require_timestamp: bool = True,
        signature_prefix: str = "",
        max_body_size: int | None = None,
        debug: bool = False,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the validator.

        Args:
            secret: Shared secret for HMAC computation.
            signature_header_name: Header carrying the signature.
            timestamp_header_name: Header carrying the ISO-8601 signing time.
            max_age_seconds: Freshness window in seconds (default 5 min).
            signature_encoding: "base64" (default) or "hex".
            require_timestamp: Reject requests without a timestamp header.
            signature_prefix: Prefix to strip from the signature (e.g. "sha256=").
            max_body_size: Reject bodies larger than this many bytes.
            debug: Log expected/received signatures and a payload preview.
            clock: Source of the current time (default: system clock).

        Raises:
            ValueError: If the configuration is unusable.
        """
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        if not secret:
            raise ValueError("A non-empty webhook secret is required")
        if not signature_header_name or not timestamp_header_name:
            raise ValueError("Header names must not be empty")
        if math.isnan(max_age_seconds) or max_age_seconds < 0:
            raise ValueError(f"max_age_seconds must be >= 0, got {max_age_seconds}")
        if max_body_size is not None and max_body_size < 0:
            raise ValueError(f"max_body_size must be >= 0, got {max_body_size}")
        try:
            encoding = SignatureEncoding(signature_encoding)
        except ValueError as e:
            raise ValueError(f"Unknown signature encoding: {signature_encoding}") from e

        self._secret = bytes(secret)
        self.signature_header_name = signature_header_name
        self.timestamp_header_name = timestamp_header_name
        self.max_age_seconds = float(max_age_seconds)
        self.signature_encoding = encoding
        self.require_timestamp = require_timestamp
        self.signature_prefix = signature_prefix
        self.max_body_size = max_body_size
        self.debug = debug
        self.clock: Clock = clock or SystemClock()

    @classmethod
    def from_settings(
        cls,
        settings: ValidatorSettings,
        clock: Clock | None = None,
    ) -> SignatureValidator:
        """Build a validator from ValidatorSettings.

        Raises:
            ValueError: If no secret is configured.
        """
        secret = settings.secret_bytes()
        if not secret:
            raise ValueError("No webhook secret configured (set HOOKSEAL_SECRET)")
        return cls(
            secret,
            signature_header_name=settings.signature_header_name,
            timestamp_header_name=settings.timestamp_header_name,
            max_age_seconds=settings.max_age_seconds,
            signature_encoding=settings.signature_encoding,
            require_timestamp=settings.require_timestamp,
            signature_prefix=settings.signature_prefix,
            max_body_size=settings.max_body_size,
            debug=settings.debug,
            clock=clock,
        )

    @classmethod
    def from_profile(
        cls,
        profile_name: str,
        secret: bytes | str,
        **overrides: Any,
    ) -> SignatureValidator:
        """Build a validator from a named profile, with keyword overrides.

        Raises:
            ValueError: If the profile is not found.
        """
        from hookseal.webhooks.profiles import get_profile

        options = get_profile(profile_name).options()
        options.update(overrides)
        return cls(secret, **options)

    def validate(
        self,
        raw_body: bytes,
        headers: Mapping[str, str],
        now: datetime | None = None,
    ) -> ValidationResult:
        """Validate a webhook request.

        Args:
            raw_body: The request body exactly as received on the wire.
            headers: Request headers (names matched case-insensitively).
            now: Current instant; read from the clock when omitted.

        Returns:
            Accepted with the parsed payload, or Rejected with a reason.
        """
        raw_body = bytes(raw_body)
        now = ensure_utc(now) if now is not None else ensure_utc(self.clock.now())

        signature = get_header(headers, self.signature_header_name)
        if signature is None or not signature.strip():
            return self._reject(
                RejectionReason.MISSING_SIGNATURE,
                detail=f"Missing {self.signature_header_name} header",
            )

        age_seconds: float | None = None
        timestamp_value = get_header(headers, self.timestamp_header_name)
        if timestamp_value is None or not timestamp_value.strip():
            if self.require_timestamp:
                return self._reject(
                    RejectionReason.MISSING_TIMESTAMP,
                    detail=f"Missing {self.timestamp_header_name} header",
                )
        else:
            try:
                signed_at = parse_timestamp(timestamp_value)
                age_seconds = abs((now - signed_at).total_seconds())
            except (ValueError, OverflowError):
                return self._reject(
                    RejectionReason.INVALID_TIMESTAMP,
                    detail="Timestamp is not an ISO-8601 instant",
                )
            if age_seconds > self.max_age_seconds:
                return self._reject(
                    RejectionReason.STALE_OR_FUTURE_TIMESTAMP,
                    age_seconds=age_seconds,
                    detail=(
                        f"Timestamp is {age_seconds:.1f}s from now "
                        f"(max {self.max_age_seconds:g}s)"
                    ),
                )

        if self.max_body_size is not None and len(raw_body) > self.max_body_size:
            return self._reject(
                RejectionReason.PAYLOAD_TOO_LARGE,
                age_seconds=age_seconds,
                detail=f"Body is {len(raw_body)} bytes (max {self.max_body_size})",
            )

        received = signature.strip()
        if self.signature_prefix and received.startswith(self.signature_prefix):
            received = received[len(self.signature_prefix) :]
        if self.signature_encoding is SignatureEncoding.HEX:
            received = received.lower()

        expected = compute_signature(self._secret, raw_body, self.signature_encoding)

        if self.debug:
            logger.debug(
                "Webhook signature comparison",
                expected=expected,
                received=received,
                payload_length=len(raw_body),
                payload_preview=raw_body[:_PREVIEW_LENGTH].decode("utf-8", "replace"),
            )

        if not constant_time_compare(received, expected):
            return self._reject(
                RejectionReason.SIGNATURE_MISMATCH,
                age_seconds=age_seconds,
                detail="Signature mismatch",
            )

        # Parse only once the bytes are authenticated
        try:
            payload = json.loads(raw_body)
        except (ValueError, RecursionError) as e:
            return self._reject(
                RejectionReason.MALFORMED_PAYLOAD,
                age_seconds=age_seconds,
                detail=f"Body is not valid JSON: {e.__class__.__name__}",
            )

        logger.debug(
            "Webhook accepted",
            age_seconds=age_seconds,
            payload_length=len(raw_body),
        )
        return Accepted(payload=payload, received_at=now, age_seconds=age_seconds)

    def _reject(
        self,
        reason: RejectionReason,
        age_seconds: float | None = None,
        detail: str = "",
    ) -> Rejected:
        logger.info(
            "Webhook rejected",
            reason=reason.value,
            age_seconds=age_seconds,
            detail=detail,
        )
        return Rejected(reason=reason, age_seconds=age_seconds, detail=detail)


def validate(
    raw_body: bytes,
    headers: Mapping[str, str],
    secret: bytes | str,
    now: datetime,
    max_age_seconds: float = DEFAULT_MAX_AGE_SECONDS,
    **options: Any,
) -> ValidationResult:
    """Validate a single webhook without keeping a validator around.

    Args:
        raw_body: The request body exactly as received.
        headers: Request headers.
        secret: Shared secret.
        now: Current instant.
        max_age_seconds: Freshness window in seconds.
        **options: Any other SignatureValidator option.

    Returns:
        Accepted or Rejected.
    """
    validator = SignatureValidator(secret, max_age_seconds=max_age_seconds, **options)
    return validator.validate(raw_body, headers, now=now)
