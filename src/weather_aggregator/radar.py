"""Radar tile URL templates and animation frame timestamps."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from .models import RadarProduct
from .normalize import parse_datetime

DEFAULT_RADAR_TILE_BASE_URL = "https://tiles.radar.weather.gov"
FRAME_STEP = timedelta(minutes=5)
FRAME_WINDOW = timedelta(hours=2)

RADAR_PRODUCTS: tuple[RadarProduct, ...] = (
    RadarProduct(
        id="standard",
        name="Standard Reflectivity",
        description="Basic radar view showing precipitation intensity",
        path="ridge/standard",
    ),
    RadarProduct(
        id="mrms_reflectivity",
        name="High-Res Composite",
        description="Detailed multi-radar precipitation view",
        path="mrms/cref",
    ),
    RadarProduct(
        id="mrms_rotation",
        name="Storm Rotation",
        description="Shows areas of rotating storms",
        path="mrms/rot",
    ),
    RadarProduct(
        id="mrms_precip",
        name="Precipitation",
        description="Estimated rainfall amounts",
        path="mrms/qpe",
    ),
)
_PRODUCTS_BY_ID = {product.id: product for product in RADAR_PRODUCTS}


def radar_products() -> tuple[RadarProduct, ...]:
    return RADAR_PRODUCTS


def floor_to_frame(moment: datetime) -> datetime:
    """Truncate to the 5-minute frame grid, in UTC."""
    moment = moment.astimezone(UTC) if moment.tzinfo else moment.replace(tzinfo=UTC)
    return moment.replace(minute=moment.minute - moment.minute % 5, second=0, microsecond=0)


def radar_tile_url(
    timestamp: datetime | str | None = None,
    product: str = "standard",
    *,
    base_url: str = DEFAULT_RADAR_TILE_BASE_URL,
) -> str:
    """Return an XYZ tile URL template (``{z}/{x}/{y}`` left unfilled).

    Unknown products fall back to ``standard``; a missing or unparseable
    timestamp means now.
    """
    moment = parse_datetime(timestamp) if timestamp is not None else None
    frame = floor_to_frame(moment or datetime.now(UTC))
    selected = _PRODUCTS_BY_ID.get(product, _PRODUCTS_BY_ID["standard"])
    return (
        f"{base_url.rstrip('/')}/tiles/{selected.path}/{frame:%Y%m%dT%H%M}"
        "/CONUS-LARGE/{z}/{x}/{y}.png"
    )


def radar_timestamps(now: datetime | None = None) -> list[str]:
    """ISO-8601 frame times covering the last two hours, oldest first."""
    end = floor_to_frame(now or datetime.now(UTC))
    frame = end - FRAME_WINDOW
    stamps: list[str] = []
    while frame <= end:
        stamps.append(frame.strftime("%Y-%m-%dT%H:%M:%SZ"))
        frame += FRAME_STEP
    return stamps
