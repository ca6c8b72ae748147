"""Settings for talking to the contest's Supabase project."""

import os
from dataclasses import dataclass
from typing import Self

from medals.errors import ConfigurationError


@dataclass(frozen=True)
class Settings:
    """Connection and batching settings.

    Attributes:
        supabase_url: Project URL, e.g. https://xyz.supabase.co
        supabase_key: Service role key (preferred) or anon key
        samples_table: Table holding samples and their judge scores
        bands_table: Table holding the medal bands
        http_timeout: Seconds before a single request times out
        max_concurrency: Maximum number of rows written in parallel
    """
    supabase_url: str
    supabase_key: str
    samples_table: str = "muestras"
    bands_table: str = "configuracion_medallas"
    http_timeout: float = 30.0
    max_concurrency: int = 8

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Self:
        """Read settings from the environment.

        Raises:
            ConfigurationError: If the URL or key is missing, or a numeric
                setting does not parse
        """
        env = os.environ if environ is None else environ

        url = env.get("SUPABASE_URL", "").strip()
        key = (env.get("SUPABASE_SERVICE_ROLE_KEY") or env.get("SUPABASE_ANON_KEY") or "").strip()
        if not url or not key:
            raise ConfigurationError(
                "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY) must be set"
            )

        try:
            http_timeout = float(env.get("MEDALS_HTTP_TIMEOUT") or "30")
            max_concurrency = int(env.get("MEDALS_MAX_CONCURRENCY") or "8")
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e
        if http_timeout <= 0 or max_concurrency < 1:
            raise ConfigurationError(
                "MEDALS_HTTP_TIMEOUT must be positive and MEDALS_MAX_CONCURRENCY at least 1"
            )

        return cls(
            supabase_url=url.rstrip("/"),
            supabase_key=key,
            samples_table=env.get("MEDALS_SAMPLES_TABLE") or "muestras",
            bands_table=env.get("MEDALS_BANDS_TABLE") or "configuracion_medallas",
            http_timeout=http_timeout,
            max_concurrency=max_concurrency,
        )
