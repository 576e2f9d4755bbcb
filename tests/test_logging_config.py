from core.logging_config import redact_sensitive


def test_redact_sensitive_masks_credentials_and_drops_psp_bodies():
    event = {
        "event": "psp_request_failed",
        "Authorization": "Bearer abc",
        "psp_error_message": "raw provider text",
        "details": {"client_secret": "s3cr3t", "correlation_id": "dbg-1", "response_body": "{...}"},
        "http_status": 422,
    }
    out = redact_sensitive(None, "error", event)
    assert out["Authorization"] == "***"
    assert "psp_error_message" not in out
    assert out["details"] == {"client_secret": "***", "correlation_id": "dbg-1"}
    assert out["http_status"] == 422
