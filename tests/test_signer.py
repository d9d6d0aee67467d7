"""Tests for webhook signing."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from hookseal.core.clock import FrozenClock
from hookseal.webhooks import (
    Accepted,
    RejectionReason,
    SignatureValidator,
    WebhookSigner,
    compute_signature,
    format_timestamp,
)

NOW = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)
SECRET = b"s3cr3t"


class TestFormatTimestamp:
    """Tests for timestamp formatting."""

    def test_utc_z_suffix(self):
        assert format_timestamp(NOW) == "2024-01-15T10:00:00Z"

    def test_converts_offsets_to_utc(self):
        value = datetime(2024, 1, 15, 11, 0, 0, tzinfo=timezone(timedelta(hours=1)))
        assert format_timestamp(value) == "2024-01-15T10:00:00Z"


class TestWebhookSigner:
    """Tests for WebhookSigner."""

    def test_sign_headers(self):
        signer = WebhookSigner(SECRET, clock=FrozenClock(NOW))

        headers = signer.sign(b'{"a":1}')

        assert headers == {
            "x-signature": compute_signature(SECRET, b'{"a":1}'),
            "x-timestamp": "2024-01-15T10:00:00Z",
        }

    def test_sign_json_returns_signed_bytes(self):
        signer = WebhookSigner(SECRET, clock=FrozenClock(NOW))

        body, headers = signer.sign_json({"a": 1, "b": [1, 2]})

        assert body == b'{"a":1,"b":[1,2]}'
        assert headers["x-signature"] == compute_signature(SECRET, body)

    def test_sign_json_keeps_unicode(self):
        signer = WebhookSigner(SECRET, clock=FrozenClock(NOW))

        body, _ = signer.sign_json({"name": "Zoë"})

        assert json.loads(body) == {"name": "Zoë"}
        assert "Zoë".encode() in body

    def test_prefix_and_hex(self):
        signer = WebhookSigner(
            SECRET,
            signature_encoding="hex",
            signature_prefix="sha256=",
            clock=FrozenClock(NOW),
        )

        headers = signer.sign(b"{}")

        assert headers["x-signature"] == "sha256=" + compute_signature(SECRET, b"{}", "hex")

    def test_empty_secret(self):
        with pytest.raises(ValueError):
            WebhookSigner(b"")

    def test_unknown_encoding(self):
        with pytest.raises(ValueError, match="encoding"):
            WebhookSigner(SECRET, signature_encoding="base32")


class TestSignerValidatorAgreement:
    """Round trips between the sending and receiving halves."""

    @pytest.mark.parametrize("encoding", ["base64", "hex"])
    @pytest.mark.parametrize(
        "payload",
        [{"a": 1}, {"nested": {"list": [1, 2.5, None, True]}}, [], "text", {"emoji": "\U0001f512"}],
    )
    def test_round_trip(self, encoding, payload):
        """Test signing with the reference MAC and validating at the same instant."""
        clock = FrozenClock(NOW)
        validator = SignatureValidator(SECRET, signature_encoding=encoding, clock=clock)
        signer = WebhookSigner.for_validator(validator, SECRET)

        body, headers = signer.sign_json(payload)
        result = validator.validate(body, headers)

        assert isinstance(result, Accepted)
        assert result.payload == payload
        assert result.age_seconds == pytest.approx(0)

    def test_for_validator_copies_settings(self):
        validator = SignatureValidator.from_profile("cipp", SECRET, signature_prefix="v1=")
        signer = WebhookSigner.for_validator(validator, SECRET)

        assert signer.signature_header_name == "x-cipp-signature"
        assert signer.timestamp_header_name == "x-cipp-timestamp"
        assert signer.signature_prefix == "v1="
        assert signer.clock is validator.clock

    def test_replayed_request_rejected_later(self):
        """Test a captured request stops verifying once outside the window."""
        clock = FrozenClock(NOW)
        validator = SignatureValidator(SECRET, clock=clock)
        body, headers = WebhookSigner.for_validator(validator, SECRET).sign_json({"a": 1})

        assert isinstance(validator.validate(body, headers), Accepted)

        clock.advance(301)
        result = validator.validate(body, headers)

        assert result.reason is RejectionReason.STALE_OR_FUTURE_TIMESTAMP

    def test_different_secret_rejected(self):
        validator = SignatureValidator(SECRET, clock=FrozenClock(NOW))
        body, headers = WebhookSigner(b"other", clock=FrozenClock(NOW)).sign_json({"a": 1})

        assert validator.validate(body, headers).reason is RejectionReason.SIGNATURE_MISMATCH
