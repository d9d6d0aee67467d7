"""hookseal - HMAC-SHA256 webhook authentication."""

from hookseal.webhooks import (
    Accepted,
    Rejected,
    RejectionReason,
    SignatureValidator,
    WebhookSigner,
    validate,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Accepted",
    "Rejected",
    "RejectionReason",
    "SignatureValidator",
    "WebhookSigner",
    "validate",
]
