import asyncio
import aiohttp
import json
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from rewards.client import ClaimResponse, RemoteError, RewardClient

BASE_URL = "https://api.example.test/v1"


def make_session(status=200, body=None, json_error=None, get_error=None):
    """Build a mocked aiohttp session whose .get() yields one response."""
    mock_response = AsyncMock()
    mock_response.status = status
    if json_error is not None:
        mock_response.json.side_effect = json_error
    else:
        mock_response.json.return_value = body

    get_ctx = AsyncMock()
    get_ctx.__aenter__.return_value = mock_response
    get_ctx.__aexit__.return_value = None

    # session.get is not a coroutine; it returns the context manager
    session_instance = AsyncMock()
    if get_error is not None:
        session_instance.get = MagicMock(side_effect=get_error)
    else:
        session_instance.get = MagicMock(return_value=get_ctx)
    session_instance.closed = False
    return session_instance


class TestIdentify:
    """Test suite for RewardClient.identify."""

    @pytest.mark.asyncio
    async def test_identify_returns_user_id(self):
        session = make_session(body={"id": "user-42", "email": "a@b.c"})
        with patch('aiohttp.ClientSession', return_value=session):
            client = RewardClient(BASE_URL)
            assert await client.identify("tok") == "user-42"

        url = session.get.call_args[0][0]
        headers = session.get.call_args[1]["headers"]
        assert url == f"{BASE_URL}/users"
        assert headers == {"Authorization": "Bearer tok"}

    @pytest.mark.asyncio
    async def test_identify_stringifies_numeric_id(self):
        session = make_session(body={"id": 7})
        with patch('aiohttp.ClientSession', return_value=session):
            assert await RewardClient(BASE_URL).identify("tok") == "7"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kwargs", [
        {"status": 401, "body": {"message": "Unauthorized"}},
        {"status": 500, "body": None},
        {"body": {"name": "no id"}},
        {"body": ["not", "a", "dict"]},
        {"json_error": json.JSONDecodeError("bad", "", 0)},
        {"get_error": aiohttp.ClientConnectionError("refused")},
        {"get_error": asyncio.TimeoutError()},
    ])
    async def test_identify_failures_return_none(self, kwargs):
        session = make_session(**kwargs)
        with patch('aiohttp.ClientSession', return_value=session):
            assert await RewardClient(BASE_URL).identify("tok") is None


class TestGetBalance:
    """Test suite for RewardClient.get_balance."""

    @pytest.mark.asyncio
    async def test_get_balance_success(self):
        session = make_session(body={"dipTokenBalance": 1250})
        with patch('aiohttp.ClientSession', return_value=session):
            balance = await RewardClient(BASE_URL).get_balance("user-42", "tok")

        assert balance == 1250.0
        assert session.get.call_args[0][0] == f"{BASE_URL}/users/get-balance/user-42"

    @pytest.mark.asyncio
    async def test_get_balance_http_error_raises(self):
        session = make_session(status=503, body={})
        with patch('aiohttp.ClientSession', return_value=session):
            with pytest.raises(RemoteError) as exc_info:
                await RewardClient(BASE_URL).get_balance("user-42", "tok")

        assert exc_info.value.status == 503
        assert exc_info.value.url.endswith("/users/get-balance/user-42")

    @pytest.mark.asyncio
    async def test_get_balance_transport_error_raises(self):
        session = make_session(get_error=aiohttp.ClientConnectionError("reset"))
        with patch('aiohttp.ClientSession', return_value=session):
            with pytest.raises(RemoteError) as exc_info:
                await RewardClient(BASE_URL).get_balance("user-42", "tok")
        assert exc_info.value.status is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"dipTokenBalance": None}, {"dipTokenBalance": "lots"},
                                      {"dipTokenBalance": True}, ["dipTokenBalance"]])
    async def test_get_balance_bad_body_raises(self, body):
        session = make_session(body=body)
        with patch('aiohttp.ClientSession', return_value=session):
            with pytest.raises(RemoteError):
                await RewardClient(BASE_URL).get_balance("user-42", "tok")


class TestClaim:
    """Test suite for RewardClient.claim."""

    @pytest.mark.asyncio
    async def test_claim_success(self):
        session = make_session(body={"earned": 10})
        with patch('aiohttp.ClientSession', return_value=session):
            result = await RewardClient(BASE_URL).claim("user-42", "tok")

        assert result == ClaimResponse(claimed=True, payload={"earned": 10})
        assert session.get.call_args[0][0] == f"{BASE_URL}/users/earn/user-42"

    @pytest.mark.asyncio
    async def test_claim_rejected_returns_false(self):
        session = make_session(status=400, body={"message": "Already checked in today"})
        with patch('aiohttp.ClientSession', return_value=session):
            result = await RewardClient(BASE_URL).claim("user-42", "tok")

        assert result.claimed is False
        assert result.payload is None

    @pytest.mark.asyncio
    async def test_claim_transport_error_returns_false(self):
        session = make_session(get_error=asyncio.TimeoutError())
        with patch('aiohttp.ClientSession', return_value=session):
            result = await RewardClient(BASE_URL).claim("user-42", "tok")
        assert result.claimed is False


class TestClientSession:
    """Test suite for session lifecycle."""

    @pytest.mark.asyncio
    async def test_session_created_with_headers_and_timeout(self):
        session = make_session(body={"id": "u"})
        with patch('aiohttp.ClientSession', return_value=session) as MockSessionClass:
            client = RewardClient(BASE_URL + "/", timeout=3.5, headers={"User-Agent": "Test/1.0"})
            await client.identify("tok")

        kwargs = MockSessionClass.call_args[1]
        assert kwargs["headers"] == {"User-Agent": "Test/1.0"}
        assert kwargs["timeout"].total == 3.5
        assert client.base_url == BASE_URL

    @pytest.mark.asyncio
    async def test_session_reused_across_calls(self):
        session = make_session(body={"id": "u", "dipTokenBalance": 1})
        with patch('aiohttp.ClientSession', return_value=session) as MockSessionClass:
            client = RewardClient(BASE_URL)
            await client.identify("tok")
            await client.get_balance("u", "tok")
        assert MockSessionClass.call_count == 1

    @pytest.mark.asyncio
    async def test_context_manager_closes_session(self):
        session = make_session(body={"id": "u"})
        with patch('aiohttp.ClientSession', return_value=session):
            async with RewardClient(BASE_URL) as client:
                await client.identify("tok")
        session.close.assert_awaited_once()
        assert client._session is None
