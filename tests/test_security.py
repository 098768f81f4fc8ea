from datetime import timedelta

import pytest
from jose import jwt

from app.core.security import create_access_token, decode_token


def test_access_token_round_trip_keeps_subject():
    token = create_access_token("user_reviewer_1")
    payload = decode_token(token, expected_type="access")
    assert payload["sub"] == "user_reviewer_1"
    assert payload["type"] == "access"


def test_expired_token_is_rejected():
    token = create_access_token("user_reviewer_1", expires_delta=timedelta(seconds=-5))
    with pytest.raises(ValueError):
        decode_token(token)


def test_token_signed_with_other_secret_is_rejected():
    token = jwt.encode({"sub": "user_reviewer_1", "type": "access"}, "another-secret", algorithm="HS256")
    with pytest.raises(ValueError, match="Invalid token"):
        decode_token(token)


def test_wrong_token_type_is_rejected():
    token = create_access_token("user_reviewer_1")
    with pytest.raises(ValueError, match="Unexpected token type"):
        decode_token(token, expected_type="refresh")
