"""Tests for the RC API endpoints.

Tests the v1 proxy, the v2 cached lookup and the cache administration
endpoints with the service wired to an in-memory store and a mocked
upstream fetcher.
"""

from collections.abc import AsyncGenerator
from copy import deepcopy
from datetime import date
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from rcgateway.dependencies import get_rc_details_service
from rcgateway.repositories import InMemoryRCDetailsRepository
from rcgateway.services.normalizer import RCRecord
from rcgateway.services.rc_details import CACHE_HIT_MESSAGE, RCDetailsService
from rcgateway.services.upstream import RCUpstreamError
from tests.mocks.rc_responses import (
    INVALID_TOKEN_RESPONSE,
    MH12AB1234_SUCCESS,
    NOT_FOUND_RESPONSE,
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def test_app(
    app: FastAPI,
    memory_store: InMemoryRCDetailsRepository,
    mock_fetcher: MagicMock,
) -> FastAPI:
    """App with the RC service wired to test doubles."""
    service = RCDetailsService(store=memory_store, fetcher=mock_fetcher)
    app.dependency_overrides[get_rc_details_service] = lambda: service

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
async def client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
async def cached(memory_store: InMemoryRCDetailsRepository) -> None:
    await memory_store.upsert(
        "MH12AB1234",
        RCRecord(
            rc_number="MH12AB1234",
            registration_date=date(2020, 1, 15),
            financed=0,
        ),
    )


ADMIN_HEADERS = {"X-API-Key": "test-api-key"}


# =============================================================================
# v2 Lookup Tests
# =============================================================================


class TestVerifyRCv2:
    """Tests for POST /api/v2/rc/rc_verify."""

    @pytest.mark.asyncio
    async def test_missing_authorization(
        self, client: AsyncClient, mock_fetcher: MagicMock
    ) -> None:
        response = await client.post(
            "/api/v2/rc/rc_verify", json={"id_number": "MH12AB1234"}
        )

        assert response.status_code == 401
        data = response.json()
        assert data["status"] is False
        assert data["statuscode"] == 401
        assert data["message"] == "Missing Authorization header"
        assert data["error"]["code"] == "MISSING_AUTHORIZATION"
        mock_fetcher.fetch_rc_details.assert_not_called()

    @pytest.mark.asyncio
    async def test_cache_miss_returns_upstream_envelope(
        self,
        client: AsyncClient,
        mock_fetcher: MagicMock,
        auth_header: dict[str, str],
    ) -> None:
        response = await client.post(
            "/api/v2/rc/rc_verify",
            json={"id_number": "MH12AB1234"},
            headers=auth_header,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] is True
        assert data["message"] == "Success"
        assert data["reference_id"] == 48211
        assert data["status_code"] == 200
        assert data["data"]["rc_number"] == "MH12AB1234"
        mock_fetcher.fetch_rc_details.assert_awaited_once_with(
            "MH12AB1234", authorization="Bearer test-upstream-token"
        )

    @pytest.mark.asyncio
    async def test_cache_hit(
        self,
        client: AsyncClient,
        mock_fetcher: MagicMock,
        auth_header: dict[str, str],
        cached: None,
    ) -> None:
        response = await client.post(
            "/api/v2/rc/rc_verify",
            json={"id_number": "MH12AB1234"},
            headers=auth_header,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == CACHE_HIT_MESSAGE
        assert data["reference_id"] == 0
        assert data["statuscode"] == 200
        assert data["data"]["financed"] == "false"
        assert data["data"]["registration_date"] == "2020-01-15"
        assert data["data"]["less_info"] is False
        mock_fetcher.fetch_rc_details.assert_not_called()

    @pytest.mark.asyncio
    async def test_upstream_failure_status_is_propagated(
        self,
        client: AsyncClient,
        mock_fetcher: MagicMock,
        auth_header: dict[str, str],
    ) -> None:
        mock_fetcher.fetch_rc_details.return_value = deepcopy(NOT_FOUND_RESPONSE)

        response = await client.post(
            "/api/v2/rc/rc_verify",
            json={"id_number": "MH12AB1234"},
            headers=auth_header,
        )

        assert response.status_code == 404
        assert response.json() == NOT_FOUND_RESPONSE

    @pytest.mark.asyncio
    async def test_upstream_error_is_bad_gateway(
        self,
        client: AsyncClient,
        mock_fetcher: MagicMock,
        auth_header: dict[str, str],
    ) -> None:
        mock_fetcher.fetch_rc_details.side_effect = RCUpstreamError(
            "RC details service unavailable"
        )

        response = await client.post(
            "/api/v2/rc/rc_verify",
            json={"id_number": "MH12AB1234"},
            headers=auth_header,
        )

        assert response.status_code == 502
        data = response.json()
        assert data["status"] is False
        assert data["message"] == "RC details service unavailable"

    @pytest.mark.asyncio
    async def test_empty_id_number_is_rejected(
        self,
        client: AsyncClient,
        mock_fetcher: MagicMock,
        auth_header: dict[str, str],
    ) -> None:
        response = await client.post(
            "/api/v2/rc/rc_verify", json={"id_number": ""}, headers=auth_header
        )

        assert response.status_code == 400
        data = response.json()
        assert data["status"] is False
        assert data["error"]["code"] == "VALIDATION_ERROR"
        mock_fetcher.fetch_rc_details.assert_not_called()


# =============================================================================
# v1 Proxy Tests
# =============================================================================


class TestVerifyRCv1:
    """Tests for POST /api/v1/rc/rc_verify and the legacy /api/rc path."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/api/v1/rc/rc_verify", "/api/rc/rc_verify"])
    async def test_proxies_without_caching(
        self,
        client: AsyncClient,
        mock_fetcher: MagicMock,
        memory_store: InMemoryRCDetailsRepository,
        auth_header: dict[str, str],
        path: str,
    ) -> None:
        for _ in range(2):
            response = await client.post(
                path, json={"id_number": "MH12AB1234"}, headers=auth_header
            )
            assert response.status_code == 200
            assert response.json()["message"] == "Success"

        assert mock_fetcher.fetch_rc_details.await_count == 2
        assert await memory_store.exists("MH12AB1234") is False

    @pytest.mark.asyncio
    async def test_ignores_cache(
        self,
        client: AsyncClient,
        mock_fetcher: MagicMock,
        auth_header: dict[str, str],
        cached: None,
    ) -> None:
        response = await client.post(
            "/api/v1/rc/rc_verify",
            json={"id_number": "MH12AB1234"},
            headers=auth_header,
        )

        assert response.json()["message"] == "Success"
        mock_fetcher.fetch_rc_details.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_authorization(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/rc/rc_verify", json={"id_number": "MH12AB1234"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Missing Authorization header"

    @pytest.mark.asyncio
    async def test_upstream_auth_failure(
        self,
        client: AsyncClient,
        mock_fetcher: MagicMock,
        auth_header: dict[str, str],
    ) -> None:
        mock_fetcher.fetch_rc_details.return_value = deepcopy(INVALID_TOKEN_RESPONSE)

        response = await client.post(
            "/api/v1/rc/rc_verify",
            json={"id_number": "MH12AB1234"},
            headers=auth_header,
        )

        assert response.status_code == 401
        assert response.json() == INVALID_TOKEN_RESPONSE


# =============================================================================
# Envelope Passthrough Tests
# =============================================================================


class TestEnvelopePassthrough:
    """Upstream envelopes reach the caller exactly as upstream sent them."""

    @pytest.fixture
    def odd_typed_success(self) -> dict[str, Any]:
        payload = deepcopy(MH12AB1234_SUCCESS)
        payload["data"].update(
            cubic_capacity=1197,
            financed=True,
            less_info="N",
            noc_details={"issued": False},
        )
        return payload

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path",
        ["/api/v1/rc/rc_verify", "/api/rc/rc_verify", "/api/v2/rc/rc_verify"],
    )
    async def test_success_body_is_forwarded_verbatim(
        self,
        client: AsyncClient,
        mock_fetcher: MagicMock,
        auth_header: dict[str, str],
        odd_typed_success: dict[str, Any],
        path: str,
    ) -> None:
        mock_fetcher.fetch_rc_details.return_value = deepcopy(odd_typed_success)

        response = await client.post(
            path, json={"id_number": "MH12AB1234"}, headers=auth_header
        )

        assert response.status_code == 200
        assert response.json() == odd_typed_success

    @pytest.mark.asyncio
    async def test_odd_typed_success_is_still_cached(
        self,
        client: AsyncClient,
        mock_fetcher: MagicMock,
        memory_store: InMemoryRCDetailsRepository,
        auth_header: dict[str, str],
        odd_typed_success: dict[str, Any],
    ) -> None:
        mock_fetcher.fetch_rc_details.return_value = deepcopy(odd_typed_success)

        await client.post(
            "/api/v2/rc/rc_verify",
            json={"id_number": "MH12AB1234"},
            headers=auth_header,
        )

        stored = await memory_store.lookup("MH12AB1234")
        assert stored is not None
        assert stored.cubic_capacity == 1197.0
        assert stored.noc_details is None

    @pytest.mark.asyncio
    async def test_id_number_is_used_as_supplied(
        self,
        client: AsyncClient,
        mock_fetcher: MagicMock,
        memory_store: InMemoryRCDetailsRepository,
        auth_header: dict[str, str],
    ) -> None:
        await client.post(
            "/api/v2/rc/rc_verify",
            json={"id_number": " MH12AB1234 "},
            headers=auth_header,
        )

        mock_fetcher.fetch_rc_details.assert_awaited_once_with(
            " MH12AB1234 ", authorization="Bearer test-upstream-token"
        )
        assert await memory_store.exists(" MH12AB1234 ") is True
        assert await memory_store.exists("MH12AB1234") is False


# =============================================================================
# Cache Administration Tests
# =============================================================================


class TestCacheAdministration:
    """Tests for the /api/v2/rc/cache endpoints."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("GET", "/api/v2/rc/cache/stats"),
            ("GET", "/api/v2/rc/cache/MH12AB1234"),
            ("DELETE", "/api/v2/rc/cache/MH12AB1234"),
        ],
    )
    async def test_requires_api_key(
        self, client: AsyncClient, method: str, path: str
    ) -> None:
        missing = await client.request(method, path)
        wrong = await client.request(method, path, headers={"X-API-Key": "nope"})

        assert missing.status_code == 401
        assert wrong.status_code == 401
        assert wrong.json()["error"]["code"] == "INVALID_API_KEY"

    @pytest.mark.asyncio
    async def test_non_ascii_api_key_is_rejected(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/v2/rc/cache/stats",
            headers={"X-API-Key": "clé-de-test".encode("latin-1")},
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_API_KEY"

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, cached: None) -> None:
        response = await client.get("/api/v2/rc/cache/stats", headers=ADMIN_HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["total_records"] == 1
        assert data["last_updated"] is not None

    @pytest.mark.asyncio
    async def test_get_cached(
        self, client: AsyncClient, mock_fetcher: MagicMock, cached: None
    ) -> None:
        response = await client.get(
            "/api/v2/rc/cache/MH12AB1234", headers=ADMIN_HEADERS
        )

        assert response.status_code == 200
        assert response.json()["message"] == CACHE_HIT_MESSAGE
        mock_fetcher.fetch_rc_details.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_cached_missing(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/v2/rc/cache/MH12AB1234", headers=ADMIN_HEADERS
        )

        assert response.status_code == 404
        data = response.json()
        assert data["error"]["code"] == "RC_DETAILS_NOT_FOUND"
        assert data["error"]["details"] == {"rc_number": "MH12AB1234"}

    @pytest.mark.asyncio
    async def test_evict(
        self,
        client: AsyncClient,
        memory_store: InMemoryRCDetailsRepository,
        cached: None,
    ) -> None:
        response = await client.delete(
            "/api/v2/rc/cache/MH12AB1234", headers=ADMIN_HEADERS
        )

        assert response.status_code == 200
        assert "evicted" in response.json()["message"]
        assert await memory_store.exists("MH12AB1234") is False

    @pytest.mark.asyncio
    async def test_evict_missing(self, client: AsyncClient) -> None:
        response = await client.delete(
            "/api/v2/rc/cache/MH12AB1234", headers=ADMIN_HEADERS
        )

        assert response.status_code == 404
