"""Tests for Discord signature verification."""

from types import SimpleNamespace

from nacl.signing import SigningKey

from interaction_router import security


def _public_key(signing_key: SigningKey) -> str:
    return signing_key.verify_key.encode().hex()


def test_valid_signature_accepted(signing_key):
    body = '{"type":1}'
    timestamp = "1700000000"
    signature = security.compute_signature(signing_key, timestamp, body)

    assert security.is_valid_discord_request(
        public_key=_public_key(signing_key), timestamp=timestamp, body=body, signature=signature
    )
    assert security.is_valid_discord_request(
        public_key=_public_key(signing_key), timestamp=timestamp, body=body.encode(), signature=signature
    )


def test_tampered_body_rejected(signing_key):
    timestamp = "1700000000"
    signature = security.compute_signature(signing_key, timestamp, '{"type":1}')

    assert not security.is_valid_discord_request(
        public_key=_public_key(signing_key), timestamp=timestamp, body='{"type":2}', signature=signature
    )


def test_signature_from_other_key_rejected(signing_key):
    other = SigningKey.generate()
    signature = security.compute_signature(other, "1", "{}")

    assert not security.is_valid_discord_request(
        public_key=_public_key(signing_key), timestamp="1", body="{}", signature=signature
    )


def test_missing_headers_rejected(signing_key):
    signature = security.compute_signature(signing_key, "1", "{}")
    key = _public_key(signing_key)

    assert not security.is_valid_discord_request(public_key=key, timestamp=None, body="{}", signature=signature)
    assert not security.is_valid_discord_request(public_key=key, timestamp="1", body="{}", signature=None)
    assert not security.is_valid_discord_request(public_key=key, timestamp="", body="{}", signature="")


def test_malformed_signature_rejected(signing_key):
    assert not security.is_valid_discord_request(
        public_key=_public_key(signing_key), timestamp="1", body="{}", signature="zz-not-hex"
    )
    assert not security.is_valid_discord_request(
        public_key=_public_key(signing_key), timestamp="1", body="{}", signature="abcd"
    )


def test_stale_timestamp_rejected_when_max_age_set(monkeypatch, signing_key):
    monkeypatch.setattr(security, "time", SimpleNamespace(time=lambda: 2000))
    signature = security.compute_signature(signing_key, "100", "{}")
    key = _public_key(signing_key)

    assert security.is_valid_discord_request(public_key=key, timestamp="100", body="{}", signature=signature)
    assert not security.is_valid_discord_request(
        public_key=key, timestamp="100", body="{}", signature=signature, max_age=300
    )
    assert not security.is_valid_discord_request(
        public_key=key, timestamp="soon", body="{}", signature=signature, max_age=300
    )
