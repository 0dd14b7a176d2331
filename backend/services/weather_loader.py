"""EPW weather loading with a synthetic fallback.

Loading never raises: a fetch or parse failure logs a warning and the caller
gets climatology weather plus a message to show the user.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

import aiohttp

from core.models import Location
from core.presets import DEFAULT_SITE
from data.climate import DEFAULT_MANUAL_WEATHER, ManualWeatherSettings, build_manual_profile, infer_climatology
from data.epw import EpwDataset, EpwValidation, parse_epw_text, validate_epw_dataset
from data.weather import ClimatologyWeather, EpwWeather, ManualWeather, WeatherProvider

logger = logging.getLogger(__name__)

WEATHER_FILE_URL = "weather/GBR_WAL_Pencelli.Aux.036100_TMYx.epw"
FALLBACK_WARNING = "Weather file failed to load - using simplified demo weather (clear-sky sunlight)."
FETCH_TIMEOUT_S = 30


@dataclass(frozen=True)
class WeatherLoadResult:
    provider: WeatherProvider
    dataset: EpwDataset | None = None
    validation: EpwValidation | None = None
    warning: str | None = None

    @property
    def using_epw(self) -> bool:
        return self.dataset is not None


def epw_location(dataset: EpwDataset) -> Location:
    meta = dataset.meta
    return Location(
        latitude=meta.latitude,
        longitude=meta.longitude,
        tz_hours=meta.tz_hours,
        elevation_m=meta.elevation_m,
        name=meta.name,
    )


def provider_for_mode(
    mode: str,
    dataset: EpwDataset | None = None,
    location: Location = DEFAULT_SITE,
    manual: ManualWeatherSettings = DEFAULT_MANUAL_WEATHER,
) -> WeatherProvider:
    """Build the weather source for a mode string: ``epw``, ``climatology`` or ``manual``.

    ``epw`` without a dataset, and any unknown mode, fall back to climatology.
    """
    match mode:
        case "epw" if dataset is not None:
            return EpwWeather(dataset=dataset, fallback=infer_climatology(epw_location(dataset)))
        case "manual":
            return ManualWeather(profile=build_manual_profile(location, manual))
        case _:
            return ClimatologyWeather(profile=infer_climatology(location), source="synthetic")


class WeatherLoader:
    """Fetches and parses EPW files; successful loads are cached per URL."""

    _cache: dict[str, tuple[EpwDataset, EpwValidation]] = {}

    @classmethod
    async def _fetch_text(cls, url: str) -> str:
        if url.startswith(("http://", "https://")):
            timeout = aiohttp.ClientTimeout(total=FETCH_TIMEOUT_S)
            async with aiohttp.ClientSession(timeout=timeout) as session, session.get(url) as response:
                response.raise_for_status()
                return await response.text()
        return await asyncio.to_thread(Path(url).read_text, encoding="utf-8", errors="replace")

    @classmethod
    async def load(cls, url: str = WEATHER_FILE_URL, fallback_location: Location = DEFAULT_SITE) -> WeatherLoadResult:
        """Load an EPW dataset from an http(s) URL or a local path.

        Args:
            url: Location of the EPW file
            fallback_location: Site for the climatology used when loading fails

        Returns:
            WeatherLoadResult with an EPW provider, or a climatology provider
            and a warning message
        """
        cached = cls._cache.get(url)
        if cached is None:
            try:
                dataset = parse_epw_text(await cls._fetch_text(url))
            except (aiohttp.ClientError, TimeoutError, OSError, ValueError) as exc:
                logger.warning("[EPW] Weather load failed for %s, falling back to synthetic weather: %s", url, exc)
                return WeatherLoadResult(
                    provider=provider_for_mode("climatology", location=fallback_location),
                    warning=FALLBACK_WARNING,
                )
            cached = (dataset, validate_epw_dataset(dataset))
            cls._cache[url] = cached
            logger.info(
                "[EPW] %s loaded: tDry %.1f to %.1f C, GHI max %.0f Wh/m2",
                dataset.meta.name,
                cached[1].t_min_c,
                cached[1].t_max_c,
                cached[1].ghi_max,
            )

        dataset, validation = cached
        return WeatherLoadResult(provider=provider_for_mode("epw", dataset), dataset=dataset, validation=validation)

    @classmethod
    def clear_cache(cls) -> None:
        cls._cache.clear()
