"""Tests for the Supabase backend, against a mocked PostgREST API."""

import asyncio
import json

import httpx
import pytest

from medals.config import Settings
from medals.errors import PersistenceError
from medals.supabase import SupabaseBackend

SETTINGS = Settings(supabase_url="https://contest.supabase.co", supabase_key="service-key")


def run_with(handler, coro_factory):
    """Run coro_factory(backend) against a backend served by `handler`."""
    async def main():
        async with SupabaseBackend(SETTINGS, transport=httpx.MockTransport(handler)) as backend:
            return await coro_factory(backend)
    return asyncio.run(main())


class TestSamples:
    def test_fetch_samples(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[{"id": 1, "p1": 90}])

        rows = run_with(handler, lambda b: b.fetch_samples())
        assert rows == [{"id": 1, "p1": 90}]
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/muestras"
        assert "p5" in request.url.params["select"]
        assert request.url.params["order"] == "codigo.desc"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["authorization"] == "Bearer service-key"

    def test_update_sample(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[{"id": 7}])

        run_with(handler, lambda b: b.update_sample(7, {"p1": 90.0, "medalla": "Oro"}))
        request = seen[0]
        assert request.method == "PATCH"
        assert request.url.params["id"] == "eq.7"
        assert json.loads(request.content) == {"p1": 90.0, "medalla": "Oro"}
        assert request.headers["prefer"] == "return=representation"

    def test_update_missing_row(self):
        def handler(request):
            return httpx.Response(200, json=[])

        with pytest.raises(PersistenceError) as exc_info:
            run_with(handler, lambda b: b.update_sample(7, {"p1": 90.0}))
        assert exc_info.value.error_kind == "not_found"
        assert exc_info.value.sample_id == 7

    def test_http_error(self):
        def handler(request):
            return httpx.Response(503, json={"message": "unavailable"})

        with pytest.raises(PersistenceError) as exc_info:
            run_with(handler, lambda b: b.update_sample(7, {}))
        assert exc_info.value.error_kind == "http_503"

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(PersistenceError) as exc_info:
            run_with(handler, lambda b: b.update_sample(7, {}))
        assert exc_info.value.error_kind == "timeout"

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(PersistenceError) as exc_info:
            run_with(handler, lambda b: b.fetch_samples())
        assert exc_info.value.error_kind == "network"


class TestBands:
    def test_fetch_bands(self):
        def handler(request):
            assert request.url.path == "/rest/v1/configuracion_medallas"
            assert request.url.params["order"] == "orden.asc"
            return httpx.Response(200, json=[{"id": 1, "medalla": "Oro"}])

        assert run_with(handler, lambda b: b.fetch_bands()) == [{"id": 1, "medalla": "Oro"}]

    def test_insert_band_returns_stored_row(self):
        def handler(request):
            assert request.method == "POST"
            body = json.loads(request.content)
            return httpx.Response(201, json=[{**body, "id": 5}])

        row = run_with(handler, lambda b: b.insert_band({"medalla": "Bronce", "orden": 4}))
        assert row == {"medalla": "Bronce", "orden": 4, "id": 5}

    def test_update_and_delete_band(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.params["id"]))
            return httpx.Response(204)

        async def both(backend):
            await backend.update_band(3, {"activo": False})
            await backend.delete_band(4)

        run_with(handler, both)
        assert seen == [("PATCH", "eq.3"), ("DELETE", "eq.4")]

    def test_custom_table_names(self):
        settings = Settings(
            supabase_url="https://contest.supabase.co", supabase_key="k",
            bands_table="medals_v2",
        )

        def handler(request):
            assert request.url.path == "/rest/v1/medals_v2"
            return httpx.Response(200, json=[])

        async def main():
            async with SupabaseBackend(settings, transport=httpx.MockTransport(handler)) as backend:
                return await backend.fetch_bands()

        assert asyncio.run(main()) == []
