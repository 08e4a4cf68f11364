from socialgate.primitives.redaction import fingerprint, redact


def test_redact_removes_sensitive_keys_at_any_depth():
    # Arrange
    payload = {
        "id": "1",
        "client_secret": "s3cret",
        "nested": {"Private_Key": "pem", "keep": True},
        "items": [{"code_verifier": "v", "name": "n"}],
    }

    # Act
    result = redact(payload)

    # Assert
    assert result == {
        "id": "1",
        "nested": {"keep": True},
        "items": [{"name": "n"}],
    }
    assert payload["client_secret"] == "s3cret"


def test_fingerprint_is_short_and_stable():
    assert fingerprint("code-1") == fingerprint("code-1")
    assert fingerprint("code-1") != fingerprint("code-2")
    assert len(fingerprint("code-1")) == 12
