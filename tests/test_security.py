"""
Password hashing and bearer tokens
"""
from datetime import timedelta

from question_images.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    user_id_from_token,
    verify_password,
)


def test_password_round_trip():
    hashed = hash_password("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_token_carries_user_id():
    token = create_access_token(17)
    assert user_id_from_token(token) == 17
    assert decode_access_token(token)["type"] == "access"


def test_expired_token_is_rejected():
    token = create_access_token(17, expires_delta=timedelta(seconds=-1))
    assert decode_access_token(token) is None
    assert user_id_from_token(token) is None


def test_token_of_another_type_is_rejected():
    token = create_access_token(17, extra={"type": "refresh"})
    assert decode_access_token(token) is None


def test_malformed_token():
    assert user_id_from_token("not-a-jwt") is None
