from datetime import datetime, timedelta, timezone

import jwt
import pytest

from course_platform.auth.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    subject_id,
    verify_password,
)
from course_platform.errors import PasswordDigestError, TokenExpiredError, TokenMalformedError, ValidationError


SECRET = "tests-secret-key"


def test_password_round_trip():
    digest = hash_password("secret1")

    assert digest != "secret1"
    assert verify_password("secret1", digest) is True
    assert verify_password("secret2", digest) is False


def test_hash_is_salted():
    assert hash_password("secret1") != hash_password("secret1")


@pytest.mark.parametrize("password", ["", "short", "x" * 46])
def test_hash_rejects_out_of_policy_passwords(password):
    with pytest.raises(ValidationError):
        hash_password(password)


def test_policy_bounds_are_inclusive():
    assert verify_password("x" * 6, hash_password("x" * 6))
    assert verify_password("y" * 45, hash_password("y" * 45))


@pytest.mark.parametrize("digest", ["", "not-a-digest", "$pbkdf2-sha256$broken"])
def test_malformed_digest_is_distinguishable_from_mismatch(digest):
    with pytest.raises(PasswordDigestError):
        verify_password("secret1", digest)


def test_token_round_trip_carries_subject():
    token = create_access_token(secret=SECRET, user_id=42)
    claims = decode_access_token(token=token, secret=SECRET)

    assert claims["sub"] == "42"
    assert subject_id(claims) == 42
    assert claims["exp"] - claims["iat"] == 30 * 24 * 3600


def test_token_accepted_at_29_days_rejected_at_31():
    now = datetime.now(timezone.utc)

    fresh = create_access_token(secret=SECRET, user_id=1, issued_at=now - timedelta(days=29))
    assert subject_id(decode_access_token(token=fresh, secret=SECRET)) == 1

    stale = create_access_token(secret=SECRET, user_id=1, issued_at=now - timedelta(days=31))
    with pytest.raises(TokenExpiredError):
        decode_access_token(token=stale, secret=SECRET)


def test_tampered_or_foreign_tokens_are_malformed():
    token = create_access_token(secret=SECRET, user_id=1)

    with pytest.raises(TokenMalformedError):
        decode_access_token(token=token, secret="another-secret")

    head, body, sig = token.split(".")
    with pytest.raises(TokenMalformedError):
        decode_access_token(token=f"{head}.{body}.{sig[::-1]}", secret=SECRET)

    with pytest.raises(TokenMalformedError):
        decode_access_token(token="not.a.jwt", secret=SECRET)


def test_token_without_subject_is_malformed():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"iat": int(now.timestamp()), "exp": int((now + timedelta(days=1)).timestamp())},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(TokenMalformedError):
        decode_access_token(token=token, secret=SECRET)


def test_token_errors_carry_fixed_messages_and_reasons():
    assert TokenMalformedError().message == "Wrong Token"
    assert TokenMalformedError().reason == "token_invalid"
    assert TokenExpiredError().message == "Expired Token"
    assert TokenExpiredError().reason == "token_expired"
