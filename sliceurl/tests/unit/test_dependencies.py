import pytest
from datetime import timedelta
from unittest.mock import MagicMock, patch
from jose import JWTError

from sliceurl.dependencies import (
    get_current_user_id, get_anonymous_owner, get_client_info,
    get_link_manager, get_identity_manager
)
from sliceurl.errors import InvalidInputError, UnauthorizedError
from sliceurl.services.identity import IdentityManager
from sliceurl.services.links import LinkManager
from sliceurl.utils import create_access_token

@pytest.mark.asyncio
async def test_get_current_user_id_valid_token():
    token = create_access_token({"userId": "42", "email": "test@example.com"})
    assert await get_current_user_id(token) == "42"

@pytest.mark.asyncio
async def test_get_current_user_id_missing_token():
    with pytest.raises(UnauthorizedError) as exc_info:
        await get_current_user_id(None)

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Authorization token is required"

@pytest.mark.asyncio
async def test_get_current_user_id_invalid_token():
    with patch('sliceurl.dependencies.decode_access_token', side_effect=JWTError("Invalid token")):
        with pytest.raises(UnauthorizedError) as exc_info:
            await get_current_user_id("invalid_token")

    assert exc_info.value.message == "Invalid or expired token"

@pytest.mark.asyncio
async def test_get_current_user_id_expired_token():
    token = create_access_token({"userId": "42"}, timedelta(seconds=-5))
    with pytest.raises(UnauthorizedError):
        await get_current_user_id(token)

@pytest.mark.asyncio
async def test_get_current_user_id_without_user_claim():
    token = create_access_token({"email": "test@example.com"})
    with pytest.raises(UnauthorizedError):
        await get_current_user_id(token)

@pytest.mark.asyncio
async def test_get_anonymous_owner():
    assert await get_anonymous_owner("true") == "anonymous"

    with pytest.raises(InvalidInputError) as exc_info:
        await get_anonymous_owner(None)
    assert exc_info.value.message == "Invalid request."

@pytest.mark.asyncio
async def test_get_client_info():
    mock_request = MagicMock()
    mock_request.client.host = "192.168.1.1"
    mock_request.headers = {"user-agent": "Test Browser"}

    client_info = await get_client_info(mock_request)

    assert client_info["ip_address"] == "192.168.1.1"
    assert client_info["user_agent"] == "Test Browser"

def test_service_factories_share_session():
    mock_db = MagicMock()

    links = get_link_manager(mock_db)
    assert isinstance(links, LinkManager)
    assert links.store.db is mock_db

    mailer, verifier = MagicMock(), MagicMock()
    identity = get_identity_manager(mock_db, mailer, verifier)
    assert isinstance(identity, IdentityManager)
    assert identity.store.db is mock_db
    assert identity.mailer is mailer
    assert identity.verifier is verifier
