"""Webhook signing for senders.

The sending half of the protocol: produces the signature and timestamp
headers for a body. The body must be transmitted byte-for-byte as signed.

Usage:
    from hookseal.webhooks import WebhookSigner

    signer = WebhookSigner(secret=b"my-webhook-secret")
    body, headers = signer.sign_json({"alert": "disk full"})
    httpx.post(url, content=body, headers=headers)
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from hookseal.core.clock import Clock, SystemClock, ensure_utc
from hookseal.webhooks.verifier import (
    DEFAULT_SIGNATURE_HEADER,
    DEFAULT_TIMESTAMP_HEADER,
    SignatureEncoding,
    SignatureValidator,
    compute_signature,
)


def format_timestamp(value: datetime) -> str:
    """Format an instant as ISO-8601 UTC with a ``Z`` suffix."""
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


class WebhookSigner:
    """Signs outgoing webhook bodies with HMAC-SHA256."""

    def __init__(
        self,
        secret: bytes | str,
        *,
        signature_header_name: str = DEFAULT_SIGNATURE_HEADER,
        timestamp_header_name: str = DEFAULT_TIMESTAMP_HEADER,
        signature_encoding: SignatureEncoding | str = SignatureEncoding.BASE64,
        signature_prefix: str = "",
        clock: Clock | None = None,
    ) -> None:
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        if not secret:
            raise ValueError("A non-empty webhook secret is required")
        try:
            encoding = SignatureEncoding(signature_encoding)
        except ValueError as e:
            raise ValueError(f"Unknown signature encoding: {signature_encoding}") from e

        self._secret = bytes(secret)
        self.signature_header_name = signature_header_name
        self.timestamp_header_name = timestamp_header_name
        self.signature_encoding = encoding
        self.signature_prefix = signature_prefix
        self.clock: Clock = clock or SystemClock()

    @classmethod
    def for_validator(
        cls,
        validator: SignatureValidator,
        secret: bytes | str,
        clock: Clock | None = None,
    ) -> WebhookSigner:
        """Build a signer whose headers and encoding match a validator."""
        return cls(
            secret,
            signature_header_name=validator.signature_header_name,
            timestamp_header_name=validator.timestamp_header_name,
            signature_encoding=validator.signature_encoding,
            signature_prefix=validator.signature_prefix,
            clock=clock or validator.clock,
        )

    def sign(self, raw_body: bytes, now: datetime | None = None) -> dict[str, str]:
        """Return the headers to send alongside exactly these bytes.

        Args:
            raw_body: The body bytes that will be transmitted.
            now: Signing instant; read from the clock when omitted.
        """
        signed_at = now if now is not None else self.clock.now()
        signature = compute_signature(self._secret, bytes(raw_body), self.signature_encoding)
        return {
            self.signature_header_name: f"{self.signature_prefix}{signature}",
            self.timestamp_header_name: format_timestamp(signed_at),
        }

    def sign_json(
        self,
        payload: Any,
        now: datetime | None = None,
    ) -> tuple[bytes, dict[str, str]]:
        """Serialize a payload once and sign the resulting bytes.

        Returns:
            The body bytes to transmit and the headers that authenticate them.
        """
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        return body, self.sign(body, now=now)
