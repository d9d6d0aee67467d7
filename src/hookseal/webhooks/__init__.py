"""hookseal Webhook Authentication Module.

Validates HMAC-SHA256 signed webhooks against the raw request body with
constant-time comparison and a freshness window against replay.

Security Features:
- Signature computed over the exact bytes received
- Constant-time signature comparison
- Timestamp validation in both directions (stale and future)
- Typed rejections instead of exceptions

Usage:
    from hookseal.webhooks import SignatureValidator

    validator = SignatureValidator(secret=b"your-webhook-secret")

    result = validator.validate(
        raw_body=request.body,
        headers=dict(request.headers),
    )

    if result:
        handle(result.payload)
    else:
        respond(result.reason.http_status)

Profiles:
    from hookseal.webhooks import SignatureValidator

    validator = SignatureValidator.from_profile("cipp", secret="secret")
"""

from hookseal.webhooks.profiles import (
    SIGNATURE_PROFILES,
    SignatureProfile,
    get_profile,
)
from hookseal.webhooks.signer import WebhookSigner, format_timestamp
from hookseal.webhooks.verifier import (
    Accepted,
    Rejected,
    RejectionReason,
    SignatureEncoding,
    SignatureValidator,
    ValidationResult,
    compute_signature,
    constant_time_compare,
    get_header,
    parse_timestamp,
    validate,
)

__all__ = [
    # Validation
    "SignatureValidator",
    "validate",
    "ValidationResult",
    "Accepted",
    "Rejected",
    "RejectionReason",
    "SignatureEncoding",
    # Signing
    "WebhookSigner",
    # Profiles
    "SIGNATURE_PROFILES",
    "SignatureProfile",
    "get_profile",
    # Utilities
    "compute_signature",
    "constant_time_compare",
    "format_timestamp",
    "get_header",
    "parse_timestamp",
]
