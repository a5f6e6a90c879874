"""signer unit tests."""

import pytest

from k1s0_session_cookie import HmacSha256Signer


def test_sign_is_deterministic() -> None:
    signer = HmacSha256Signer("secret")
    assert signer.sign(b"payload") == signer.sign(b"payload")


def test_sign_length_is_sha256() -> None:
    assert len(HmacSha256Signer("secret").sign(b"payload")) == 32


def test_verify_success() -> None:
    signer = HmacSha256Signer("secret")
    mac = signer.sign(b"payload")
    assert signer.verify(b"payload", mac) is True


def test_verify_single_bit_flip_fails() -> None:
    signer = HmacSha256Signer("secret")
    mac = bytearray(signer.sign(b"payload"))
    mac[7] ^= 0x01
    assert signer.verify(b"payload", bytes(mac)) is False


def test_verify_every_bit_flip_fails() -> None:
    signer = HmacSha256Signer("secret")
    mac = signer.sign(b"payload")
    for i in range(len(mac) * 8):
        flipped = bytearray(mac)
        flipped[i // 8] ^= 1 << (i % 8)
        assert signer.verify(b"payload", bytes(flipped)) is False


def test_verify_tampered_payload_fails() -> None:
    signer = HmacSha256Signer("secret")
    mac = signer.sign(b"payload")
    assert signer.verify(b"payloaD", mac) is False


def test_verify_truncated_mac_fails() -> None:
    signer = HmacSha256Signer("secret")
    mac = signer.sign(b"payload")
    assert signer.verify(b"payload", mac[:-1]) is False


def test_different_secrets_produce_different_macs() -> None:
    assert HmacSha256Signer("secret-a").sign(b"x") != HmacSha256Signer("secret-b").sign(b"x")


def test_purpose_separates_keys() -> None:
    a = HmacSha256Signer("secret", purpose="cookies")
    b = HmacSha256Signer("secret", purpose="webhooks")
    assert a.sign(b"x") != b.sign(b"x")
    assert b.verify(b"x", a.sign(b"x")) is False


def test_empty_secret_rejected() -> None:
    with pytest.raises(ValueError):
        HmacSha256Signer("")
