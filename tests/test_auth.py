import uuid

import pytest
from jose import JWTError, jwt

from daycare.core.auth.security import create_access_token, decode_access_token
from daycare.settings import get_settings


def test_access_token_roundtrip():
    user_id, organization_id = uuid.uuid4(), uuid.uuid4()
    token = create_access_token(user_id, organization_id)
    payload = decode_access_token(token)
    assert payload["sub"] == str(user_id)
    assert payload["organization_id"] == str(organization_id)
    assert payload["type"] == "access"


def test_expired_token_rejected():
    token = create_access_token(uuid.uuid4(), uuid.uuid4(), expires_minutes=-1)
    with pytest.raises(JWTError):
        decode_access_token(token)


def test_wrong_token_type_rejected():
    settings = get_settings()
    token = jwt.encode(
        {"sub": str(uuid.uuid4()), "organization_id": str(uuid.uuid4()), "type": "refresh"},
        settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(JWTError):
        decode_access_token(token)


def test_missing_organization_rejected():
    settings = get_settings()
    token = jwt.encode({"sub": str(uuid.uuid4()), "type": "access"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(JWTError):
        decode_access_token(token)
