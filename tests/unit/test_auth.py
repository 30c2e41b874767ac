"""Unit tests for bearer token extraction and validation."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest

from src.core.media.errors import MissingOrInvalidCredentialError
from src.infrastructure.auth.tokens import get_bearer_token, make_jwt, validate_jwt

SECRET = "test-secret-with-enough-length-for-hs256"


class TestGetBearerToken:

    def test_extracts_token(self):
        assert get_bearer_token({"Authorization": "Bearer abc.def.ghi"}) == "abc.def.ghi"

    def test_scheme_is_case_insensitive(self):
        assert get_bearer_token({"authorization": "bearer abc"}) == "abc"

    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"Authorization": ""},
            {"Authorization": "Bearer"},
            {"Authorization": "Basic dXNlcjpwYXNz"},
            {"Authorization": "Bearer a b"},
        ],
    )
    def test_missing_or_malformed_header(self, headers):
        with pytest.raises(MissingOrInvalidCredentialError):
            get_bearer_token(headers)


class TestValidateJwt:

    def test_round_trip_returns_user_id(self):
        user_id = uuid4()
        assert validate_jwt(make_jwt(user_id, SECRET), SECRET) == user_id

    def test_wrong_secret_is_rejected(self):
        token = make_jwt(uuid4(), SECRET)
        with pytest.raises(MissingOrInvalidCredentialError):
            validate_jwt(token, "another-secret-of-reasonable-length!!")

    def test_expired_token_is_rejected(self):
        issued = datetime.now(timezone.utc) - timedelta(hours=2)
        token = make_jwt(uuid4(), SECRET, expires_in=timedelta(hours=1), now=issued)

        with pytest.raises(MissingOrInvalidCredentialError, match="expired"):
            validate_jwt(token, SECRET)

    def test_wrong_issuer_is_rejected(self):
        token = make_jwt(uuid4(), SECRET, issuer="someone-else")
        with pytest.raises(MissingOrInvalidCredentialError):
            validate_jwt(token, SECRET)

    def test_non_uuid_subject_is_rejected(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"iss": "tubely-access", "sub": "not-a-uuid", "exp": now + timedelta(minutes=5)},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(MissingOrInvalidCredentialError):
            validate_jwt(token, SECRET)

    def test_garbage_is_rejected(self):
        with pytest.raises(MissingOrInvalidCredentialError):
            validate_jwt("not-a-jwt", SECRET)
