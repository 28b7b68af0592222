"""
Unit tests for log redaction.
"""

from shared.logging.logger import REDACTED, _redact_credentials
from tests.conftest import USER1_CERT, USER1_KEY


class TestRedactCredentials:
    """Tests for the credential redaction processor."""

    def test_masks_credential_fields(self) -> None:
        event = _redact_credentials(
            None,
            "info",
            {"event": "wallet_identity_stored", "label": "User1", "privateKey": "abc"},
        )

        assert event["privateKey"] == REDACTED
        assert event["label"] == "User1"
        assert event["event"] == "wallet_identity_stored"

    def test_masks_pem_private_key_anywhere(self) -> None:
        """Test that key text is masked even under an innocuous field name."""
        event = _redact_credentials(
            None,
            "error",
            {
                "event": "identity_import_failed",
                "error": f"bad input: {USER1_KEY}",
                "details": {"files": [USER1_KEY, "cert.pem"]},
            },
        )

        assert event["error"] == REDACTED
        assert event["details"]["files"] == [REDACTED, "cert.pem"]

    def test_keeps_certificates(self) -> None:
        event = _redact_credentials(None, "debug", {"event": "x", "certificate": USER1_CERT})

        assert event["certificate"] == USER1_CERT

    def test_masks_nested_credentials(self) -> None:
        event = _redact_credentials(
            None,
            "info",
            {"event": "x", "identity": {"mspId": "Org1MSP", "credentials": {"certificate": "c"}}},
        )

        assert event["identity"] == {"mspId": "Org1MSP", "credentials": REDACTED}
