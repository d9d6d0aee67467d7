"""Named signature profiles.

A profile declares, once, which headers a sender uses and how it encodes the
signature, so receivers pick a profile by name instead of probing several
header names at request time.

Supported Profiles:
- default: x-signature / x-timestamp, base64 HMAC-SHA256
- cipp: x-cipp-signature / x-cipp-timestamp, base64 HMAC-SHA256
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from hookseal.webhooks.verifier import (
    DEFAULT_SIGNATURE_HEADER,
    DEFAULT_TIMESTAMP_HEADER,
    SignatureEncoding,
)


@dataclass(frozen=True)
class SignatureProfile:
    """Header names and encoding agreed with a sender."""

    name: str
    """Profile name used for lookup."""

    signature_header_name: str = DEFAULT_SIGNATURE_HEADER
    """Header containing the signature."""

    timestamp_header_name: str = DEFAULT_TIMESTAMP_HEADER
    """Header containing the ISO-8601 signing time."""

    signature_encoding: SignatureEncoding = SignatureEncoding.BASE64
    """Encoding of the HMAC digest."""

    signature_prefix: str = ""
    """Prefix to strip from the signature (e.g., 'sha256=')."""

    def options(self) -> dict[str, Any]:
        """Keyword arguments accepted by SignatureValidator and WebhookSigner."""
        return {
            "signature_header_name": self.signature_header_name,
            "timestamp_header_name": self.timestamp_header_name,
            "signature_encoding": self.signature_encoding,
            "signature_prefix": self.signature_prefix,
        }


# Profile registry
SIGNATURE_PROFILES: dict[str, SignatureProfile] = {
    "default": SignatureProfile(name="default"),
    "cipp": SignatureProfile(
        name="cipp",
        signature_header_name="x-cipp-signature",
        timestamp_header_name="x-cipp-timestamp",
    ),
}


def get_profile(profile_name: str) -> SignatureProfile:
    """Get a signature profile by name.

    Args:
        profile_name: Name of the profile (case-insensitive).

    Returns:
        The registered SignatureProfile.

    Raises:
        ValueError: If profile is not found.
    """
    profile = SIGNATURE_PROFILES.get(profile_name.lower())
    if not profile:
        raise ValueError(f"Unknown signature profile: {profile_name}")
    return profile
