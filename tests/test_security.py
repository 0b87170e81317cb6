import pytest
from jose import jwt

from app.core.config import get_settings
from app.core.security import (
    ALGORITHM,
    create_access_token,
    decode_token,
    get_password_hash,
    normalize_role,
    verify_password,
)


def test_password_hash_roundtrip():
    hashed = get_password_hash("Secret123!")

    assert hashed != "Secret123!"
    assert verify_password("Secret123!", hashed)
    assert not verify_password("secret123!", hashed)


def test_strict_token_carries_issuer_and_audience():
    payload = decode_token(create_access_token(subject=42, role="admin"))

    settings = get_settings()
    assert payload["sub"] == "42"
    assert payload["role"] == "admin"
    assert payload["iss"] == settings.jwt_issuer
    assert payload["aud"] == settings.jwt_audience


def test_legacy_token_is_accepted():
    payload = decode_token(create_access_token(subject=7, role="user", legacy=True))

    assert payload["sub"] == "7"
    assert "iss" not in payload


def test_foreign_issuer_is_rejected():
    settings = get_settings()
    token = jwt.encode(
        {"sub": "1", "role": "admin", "iss": "someone-else", "aud": settings.jwt_audience},
        settings.secret_key,
        algorithm=ALGORITHM,
    )

    with pytest.raises(ValueError):
        decode_token(token)


def test_expired_token_is_rejected():
    token = create_access_token(subject=1, role="admin", expires_delta_minutes=-1)

    with pytest.raises(ValueError, match="expired"):
        decode_token(token)


def test_wrong_signature_is_rejected():
    token = jwt.encode({"sub": "1"}, "another-secret", algorithm=ALGORITHM)

    with pytest.raises(ValueError):
        decode_token(token)


@pytest.mark.parametrize("raw,expected", [("Admin", "admin"), (" MANAGER ", "manager"), (None, "")])
def test_normalize_role(raw, expected):
    assert normalize_role(raw) == expected
