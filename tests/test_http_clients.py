from decimal import Decimal

import httpx
import pytest

from printshop.domain.exceptions import OrderValidationError, StorageServiceError, StoreServiceError
from printshop.domain.models import DEFAULT_PRICE_TABLE
from printshop.infrastructure import http_clients
from printshop.infrastructure.http_clients import HTTPObjectStorageClient, HTTPStoreClient

RealAsyncClient = httpx.AsyncClient


@pytest.fixture
def respond(monkeypatch):
    """Подменяет сеть: все запросы клиентов уходят в handler"""
    requests = []

    def install(handler):
        def recording(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        monkeypatch.setattr(
            http_clients.httpx, "AsyncClient",
            lambda **kwargs: RealAsyncClient(transport=httpx.MockTransport(recording)),
        )
        return requests

    return install


class TestHTTPStoreClient:
    async def test_store_with_pricing(self, respond):
        requests = respond(lambda request: httpx.Response(200, json={
            "_id": "S1",
            "name": "Copy Center",
            "pricing": {"blackAndWhite": {"singleSided": 1, "doubleSided": 2}, "binding": {"spiralBinding": 30}},
        }))

        store = await HTTPStoreClient("http://stores", "token").get_store("S1")

        assert store.id == "S1"
        assert store.price_table.black_and_white.single_sided == Decimal("1")
        assert store.price_table.binding == {"spiralBinding": Decimal("30")}
        assert requests[0].url == "http://stores/api/stores/S1"
        assert requests[0].headers["X-API-Key"] == "token"

    async def test_store_without_pricing_falls_back(self, respond):
        respond(lambda request: httpx.Response(200, json={"id": "S2", "name": "Kiosk"}))
        store = await HTTPStoreClient("http://stores", "token").get_store("S2")
        assert store.price_table == DEFAULT_PRICE_TABLE

    async def test_missing_store(self, respond):
        respond(lambda request: httpx.Response(404))
        assert await HTTPStoreClient("http://stores", "token").get_store("nope") is None

    async def test_negative_price_rejected(self, respond):
        respond(lambda request: httpx.Response(200, json={
            "id": "S1", "name": "Bad", "pricing": {"color": {"singleSided": -1}},
        }))
        with pytest.raises(OrderValidationError):
            await HTTPStoreClient("http://stores", "token").get_store("S1")

    async def test_service_error(self, respond):
        respond(lambda request: httpx.Response(500))
        with pytest.raises(StoreServiceError):
            await HTTPStoreClient("http://stores", "token").get_store("S1")

    async def test_connection_error(self, respond):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        respond(refuse)
        with pytest.raises(StoreServiceError):
            await HTTPStoreClient("http://stores", "token").get_store("S1")


class TestHTTPObjectStorageClient:
    async def test_upload(self, respond):
        requests = respond(lambda request: httpx.Response(201, json={"id": "obj-7", "url": "https://cdn/obj-7"}))

        ref = await HTTPObjectStorageClient("http://storage", "token").store("a.pdf", b"%PDF", "application/pdf")

        assert ref.opaque_id == "obj-7"
        assert ref.url == "https://cdn/obj-7"
        assert requests[0].url == "http://storage/api/files"

    async def test_upload_failure(self, respond):
        respond(lambda request: httpx.Response(502))
        with pytest.raises(StorageServiceError):
            await HTTPObjectStorageClient("http://storage", "token").store("a.pdf", b"%PDF", "application/pdf")

    async def test_sign_url(self, respond):
        requests = respond(lambda request: httpx.Response(200, json={"url": "https://cdn/obj-7?sig=abc"}))

        url = await HTTPObjectStorageClient("http://storage", "token").sign_url("obj-7", 300)

        assert url == "https://cdn/obj-7?sig=abc"
        assert requests[0].url == "http://storage/api/files/obj-7/signed-url"
