"""Command-line presentation of aggregated weather, location search and radar."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Mapping, Sequence
from typing import Any

from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .exceptions import (
    ConfigError,
    InvalidCoordinatesError,
    InvalidInputError,
    WeatherClientError,
    user_message,
)
from .log_setup import setup_logger
from .models import ForecastPeriod, LocationResult, WeatherRecord
from .normalize import group_daily
from .radar import RADAR_PRODUCTS
from .service import WeatherService

_UNIT_LABELS = {
    "wmoUnit:degC": "°C",
    "wmoUnit:degF": "°F",
    "wmoUnit:km_h-1": "km/h",
    "wmoUnit:m_s-1": "m/s",
    "wmoUnit:percent": "%",
    "wmoUnit:m": "m",
    "wmoUnit:km": "km",
}


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Aggregate NWS weather data, search locations and build radar URLs."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    weather = subparsers.add_parser("weather", help="Show weather for a coordinate pair.")
    weather.add_argument("--lat", type=float, default=None, help="Latitude.")
    weather.add_argument("--lon", type=float, default=None, help="Longitude.")
    weather.add_argument(
        "--max-print",
        type=int,
        default=None,
        help="Number of hourly periods to print.",
    )

    search = subparsers.add_parser("search", help="Search locations by name.")
    search.add_argument("query", help="Place name to search for.")

    radar = subparsers.add_parser("radar", help="Print a radar tile URL template.")
    radar.add_argument(
        "--product",
        choices=[product.id for product in RADAR_PRODUCTS],
        default="standard",
        help="Radar product.",
    )
    radar.add_argument(
        "--frames",
        action="store_true",
        help="Also print animation frame timestamps for the last two hours.",
    )
    return parser.parse_args(argv)


def _resolve_coords(args: argparse.Namespace, settings: Settings) -> tuple[float, float]:
    if args.max_print is not None and args.max_print <= 0:
        raise InvalidInputError("--max-print must be > 0 when provided.")
    lat = args.lat if args.lat is not None else settings.weather_default_lat
    lon = args.lon if args.lon is not None else settings.weather_default_lon
    if lat is None or lon is None:
        raise InvalidCoordinatesError(
            "Missing location input: pass --lat and --lon or set WEATHER_DEFAULT_LAT/LON."
        )
    return lat, lon


def _quantity(observation: Mapping[str, Any], key: str) -> str:
    quantity = observation.get(key)
    if not isinstance(quantity, Mapping):
        return "N/A"
    value = quantity.get("value")
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return "N/A"
    unit = _UNIT_LABELS.get(str(quantity.get("unitCode")), "")
    return f"{round(value)} {unit}".strip()


def _temperature(period: ForecastPeriod) -> str:
    if period.temperature is None:
        return "-"
    return f"{period.temperature:g} {period.temperature_unit}"


def _print_current(console: Console, record: WeatherRecord) -> None:
    location = record.location
    place = (
        f"{location.city}, {location.state}"
        if location is not None and location.city and location.state
        else "Unknown location"
    )
    coords = record.coordinates
    console.print(f"[bold]{place}[/bold] ({coords.latitude:.4f}, {coords.longitude:.4f})")

    current = record.current
    if current is None:
        console.print("Current conditions unavailable.")
        return
    description = current.get("textDescription") or "-"
    console.print(
        f"Now: {_quantity(current, 'temperature')} {description} | "
        f"wind {_quantity(current, 'windSpeed')} | "
        f"humidity {_quantity(current, 'relativeHumidity')} | "
        f"visibility {_quantity(current, 'visibility')}"
    )


def _print_daily(console: Console, record: WeatherRecord) -> None:
    if record.forecast is None:
        console.print("Forecast data is currently unavailable.")
        return
    days = group_daily(record.forecast.periods)
    if not days:
        console.print("No forecast data available.")
        return

    table = Table(title="Daily Forecast")
    table.add_column("Day")
    table.add_column("High / Low")
    table.add_column("Day", overflow="fold")
    table.add_column("Night", overflow="fold")
    table.add_column("Precip %")
    table.add_column("Wind")
    for day in days:
        table.add_row(
            day.name or "-",
            f"{_temperature(day.day)} / {_temperature(day.night)}",
            day.day.short_forecast,
            day.night.short_forecast,
            f"{day.day.probability_of_precipitation.value:g}",
            day.day.wind_speed,
        )
    console.print(table)


def _print_hourly(console: Console, record: WeatherRecord, max_print: int) -> None:
    if record.hourly is None:
        console.print("Hourly forecast is currently unavailable.")
        return

    table = Table(title="Hourly Forecast")
    table.add_column("Start")
    table.add_column("Temp")
    table.add_column("Wind")
    table.add_column("Precip %")
    table.add_column("Short Forecast", overflow="fold")
    for period in record.hourly.periods[:max_print]:
        table.add_row(
            period.start_time.strftime("%a %H:%M") if period.start_time else "-",
            _temperature(period),
            " ".join(part for part in [period.wind_speed, period.wind_direction] if part),
            f"{period.probability_of_precipitation.value:g}",
            period.short_forecast,
        )
    console.print(table)


def _print_locations(console: Console, results: list[LocationResult]) -> None:
    if not results:
        console.print("No locations found.")
        return
    table = Table(title="Locations")
    table.add_column("Name")
    table.add_column("Region")
    table.add_column("Country")
    table.add_column("Latitude")
    table.add_column("Longitude")
    for result in results:
        table.add_row(
            result.name, result.admin1, result.country, result.latitude, result.longitude
        )
    console.print(table)


async def _run(
    args: argparse.Namespace,
    settings: Settings,
    logger: logging.Logger,
    console: Console,
) -> None:
    async with WeatherService.from_settings(settings, logger) as service:
        if args.command == "weather":
            lat, lon = _resolve_coords(args, settings)
            record = await service.get_weather(lat, lon)
            _print_current(console, record)
            _print_daily(console, record)
            _print_hourly(console, record, args.max_print or settings.weather_max_print)
        elif args.command == "search":
            _print_locations(console, await service.search_locations(args.query))
        elif args.command == "radar":
            console.print(service.radar_tile_url(product=args.product))
            if args.frames:
                for stamp in service.radar_timestamps():
                    console.print(stamp)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the weather CLI."""
    args = parse_args(argv)
    logger = setup_logger()
    console = Console()

    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.error("Configuration failure: %s", exc)
        return 2

    logger.info("Starting weather CLI", extra={"command": args.command, **settings.safe_summary()})
    try:
        asyncio.run(_run(args, settings, logger, console))
    except WeatherClientError as exc:
        logger.error("Weather request failure: %s", exc)
        console.print(f"[red]{user_message(exc)}[/red]")
        return 4
    except Exception as exc:  # pragma: no cover - defensive catch for CLI runtime
        logger.exception("Unexpected weather CLI failure: %s", exc)
        return 99
    return 0


if __name__ == "__main__":
    sys.exit(main())
