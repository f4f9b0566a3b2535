from datetime import datetime, timedelta, timezone

import jwt
import pytest

from application.services.token_service import TokenService
from core.config import settings
from core.exceptions import TokenExpiredException, UnauthorizedException
from domain.member import Role

from conftest import ORGANIZER, make_token


def test_verifies_claims_into_identity():
    identity = TokenService().verify_access_token(make_token(ORGANIZER))
    assert identity == ORGANIZER


def test_accepts_id_claim_and_numeric_ids():
    token = jwt.encode({"id": 42, "role": "judge", "name": "Jun"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    identity = TokenService().verify_access_token(token)
    assert identity.id == "42"
    assert identity.role is Role.JUDGE


def test_expired_token():
    token = make_token(ORGANIZER, exp=datetime.now(timezone.utc) - timedelta(minutes=1))
    with pytest.raises(TokenExpiredException):
        TokenService().verify_access_token(token)


@pytest.mark.parametrize(
    "claims",
    [
        {"sub": "u1", "role": "superuser"},
        {"role": "organizer"},
        {"sub": "u1", "role": "organizer", "type": "refresh"},
    ],
)
def test_rejects_bad_claims(claims):
    token = jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    with pytest.raises(UnauthorizedException):
        TokenService().verify_access_token(token)


def test_rejects_foreign_signature():
    token = jwt.encode({"sub": "u1", "role": "organizer"}, "someone-else", algorithm="HS256")
    with pytest.raises(UnauthorizedException):
        TokenService().verify_access_token(token)
