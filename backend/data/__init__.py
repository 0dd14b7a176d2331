"""Weather data - EPW files, synthetic climatology and forcing providers."""

from data.climate import ClimateProfile, ManualWeatherSettings, build_manual_profile, infer_climatology
from data.epw import EpwDataset, EpwParseError, parse_epw_text, validate_epw_dataset
from data.weather import ClimatologyWeather, EpwWeather, ManualWeather, WeatherForcing, WeatherProvider, forcing_at

__all__ = [
    "ClimateProfile",
    "ClimatologyWeather",
    "EpwDataset",
    "EpwParseError",
    "EpwWeather",
    "ManualWeather",
    "ManualWeatherSettings",
    "WeatherForcing",
    "WeatherProvider",
    "build_manual_profile",
    "forcing_at",
    "infer_climatology",
    "parse_epw_text",
    "validate_epw_dataset",
]
