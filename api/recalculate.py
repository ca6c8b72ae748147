"""Vercel serverless function for recalculating aggregates and medals."""

import json
import sys
from pathlib import Path
from typing import Any

# Add the project root to the path so we can import the medals package
sys.path.insert(0, str(Path(__file__).parent.parent))

from medals.bands import DEFAULT_BANDS, MedalBandRegistry
from medals.errors import MedalEngineError, ValidationError
from medals.models import MedalBand, ScoreRecord
from medals.recalculate import RecalculationCoordinator
from medals.store import ScoreStore
from medals.summary import summarize


def handler(request):
    """Handle incoming requests to recalculate medals.

    Accepts:
    - POST with JSON body: {"samples": [sample rows], "bands": [band rows]}
      Rows use the column names of the samples and medal-band tables. When
      "bands" is omitted the default bands are used.

    Returns JSON with every sample's aggregate and medal, the ids whose
    medal differs from the one sent in, and a preliminary results summary.
    Nothing is written to the store.
    """
    # Handle CORS preflight
    if request.method == "OPTIONS":
        return create_response(
            "",
            status=204,
            headers={
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Methods": "POST, OPTIONS",
                "Access-Control-Allow-Headers": "Content-Type",
            },
        )

    if request.method != "POST":
        return create_response(
            {"error": "Method not allowed. Use POST."},
            status=405,
        )

    try:
        content_type = request.headers.get("content-type", "")
        if "application/json" not in content_type:
            return create_response(
                {"error": f"Unsupported content type: {content_type}"},
                status=400,
            )

        data = json.loads(request.body.decode("utf-8"))
        records, bands = parse_payload(data)
        return create_response(recalculate(records, bands))

    except MedalEngineError as e:
        return create_response(
            {"error": str(e)},
            status=400,
        )
    except json.JSONDecodeError as e:
        return create_response(
            {"error": f"Invalid JSON: {e}"},
            status=400,
        )
    except Exception as e:
        return create_response(
            {"error": f"Internal error: {e}"},
            status=500,
        )


def parse_payload(data: Any) -> tuple[list[ScoreRecord], list[MedalBand]]:
    """Turn the request body into records and bands.

    Raises:
        ValidationError: If the body or one of its rows is malformed
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    sample_rows = data.get("samples")
    if not isinstance(sample_rows, list):
        raise ValidationError("Missing 'samples' list in request body")

    band_rows = data.get("bands")
    if band_rows is not None and not isinstance(band_rows, list):
        raise ValidationError("'bands' must be a list")

    for row in [*sample_rows, *(band_rows or [])]:
        if not isinstance(row, dict):
            raise ValidationError(f"Each sample and band must be a JSON object, got {row!r}")

    try:
        records = [ScoreRecord.from_row(row) for row in sample_rows]
        if band_rows is None:
            bands = list(DEFAULT_BANDS)
        else:
            bands = [MedalBand.from_row(row) for row in band_rows]
    except (KeyError, TypeError, ValueError) as e:
        if isinstance(e, MedalEngineError):
            raise
        raise ValidationError(f"Malformed row: {e!r}") from e

    return records, bands


def recalculate(records: list[ScoreRecord], bands: list[MedalBand]) -> dict[str, Any]:
    """Classify the records against the bands and describe the outcome."""
    store = ScoreStore(records)
    registry = MedalBandRegistry(bands)
    coordinator = RecalculationCoordinator(store, registry)
    coordinator.recalculate_all()

    changed = store.dirty_ids()
    results = store.records()
    return {
        "samples": [
            {**record.to_dict(), "changed": record.sample_id in changed}
            for record in results
        ],
        "changed": [r.sample_id for r in results if r.sample_id in changed],
        "malformed_bands": [b.to_dict() for b in registry.malformed_bands()],
        "summary": summarize(results).to_dict(),
    }


def create_response(body, status: int = 200, headers: dict = None):
    """Create a response object for Vercel."""
    response_headers = {
        "Content-Type": "application/json",
        "Access-Control-Allow-Origin": "*",
    }
    if headers:
        response_headers.update(headers)

    if isinstance(body, dict):
        body = json.dumps(body)

    # Return in format expected by Vercel Python runtime
    return {
        "statusCode": status,
        "headers": response_headers,
        "body": body,
    }
