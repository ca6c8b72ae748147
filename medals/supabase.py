"""Samples and medal bands stored in Supabase, via its PostgREST API."""

import logging
from typing import Any

import httpx

from medals.config import Settings
from medals.errors import PersistenceError
from medals.models import SCORE_COLUMNS, SampleId
from medals.persistence import SampleBackend

logger = logging.getLogger(__name__)

SAMPLE_COLUMNS = (
    "id", "codigo", "codigotexto", "nombre", "categoriadecata",
    *SCORE_COLUMNS, "puntuacion_total", "medalla",
)


class SupabaseBackend(SampleBackend):
    """Async client for the samples and medal-band tables.

    Every HTTP failure is raised as PersistenceError, with an error_kind of
    "timeout", "network" or "http_<status>". Use as an async context manager
    or call aclose() when done.

    Args:
        settings: Connection settings
        transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._client = httpx.AsyncClient(
            base_url=f"{settings.supabase_url}/rest/v1",
            headers={
                "apikey": settings.supabase_key,
                "Authorization": f"Bearer {settings.supabase_key}",
                "Content-Type": "application/json",
            },
            timeout=settings.http_timeout,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # --- Samples ---

    async def fetch_samples(self) -> list[dict[str, Any]]:
        """All sample rows with their scores and medals, newest code first."""
        response = await self._request(
            "GET",
            f"/{self.settings.samples_table}",
            params={"select": ",".join(SAMPLE_COLUMNS), "order": "codigo.desc"},
        )
        rows = response.json()
        logger.info("Fetched %d samples", len(rows))
        return rows

    async def update_sample(self, sample_id: SampleId, row: dict[str, Any]) -> None:
        response = await self._request(
            "PATCH",
            f"/{self.settings.samples_table}",
            params={"id": f"eq.{sample_id}"},
            json=row,
            headers={"Prefer": "return=representation"},
            sample_id=sample_id,
        )
        if not response.json():
            raise PersistenceError(
                f"Sample {sample_id!r} does not exist in the store",
                error_kind="not_found",
                sample_id=sample_id,
            )

    # --- Medal bands ---

    async def fetch_bands(self) -> list[dict[str, Any]]:
        response = await self._request(
            "GET",
            f"/{self.settings.bands_table}",
            params={"select": "*", "order": "orden.asc"},
        )
        return response.json()

    async def insert_band(self, row: dict[str, Any]) -> dict[str, Any]:
        """Insert a band row and return it as stored (with its new id)."""
        response = await self._request(
            "POST",
            f"/{self.settings.bands_table}",
            json=row,
            headers={"Prefer": "return=representation"},
        )
        return response.json()[0]

    async def update_band(self, band_id: int, row: dict[str, Any]) -> None:
        await self._request(
            "PATCH",
            f"/{self.settings.bands_table}",
            params={"id": f"eq.{band_id}"},
            json=row,
        )

    async def delete_band(self, band_id: int) -> None:
        await self._request(
            "DELETE",
            f"/{self.settings.bands_table}",
            params={"id": f"eq.{band_id}"},
        )

    async def _request(
        self, method: str, path: str, sample_id: SampleId | None = None, **kwargs
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response
        except httpx.TimeoutException as e:
            raise PersistenceError(
                f"Timed out: {method} {path}", error_kind="timeout", sample_id=sample_id
            ) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise PersistenceError(
                f"HTTP error {status}: {method} {path}",
                error_kind=f"http_{status}",
                sample_id=sample_id,
            ) from e
        except httpx.RequestError as e:
            raise PersistenceError(
                f"Error reaching the store: {e}", error_kind="network", sample_id=sample_id
            ) from e
