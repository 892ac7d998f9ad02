"""AISHub request URL composition.

API docs: https://www.aishub.net/api
"""
from __future__ import annotations

from typing import Sequence

import httpx

from aishub_collector.schemas.poll_settings import PollSettings

DEFAULT_BASE_URL = "https://data.aishub.net/ws.php"


def build_request_url(
    poll_settings: PollSettings,
    imo_keys: Sequence[str],
    mmsi_keys: Sequence[str],
    base_url: str = DEFAULT_BASE_URL,
) -> str:
    """Compose the ws.php query for the current settings and fleet.

    Optional filters (bounding box, key lists, max age) are only sent when
    set; an empty key list means "no filter" rather than "no vessels".
    """
    params: list[tuple[str, str]] = [
        ("username", poll_settings.api_key),
        ("format", str(poll_settings.data_value_format)),
        ("output", poll_settings.output_format),
        ("compress", str(poll_settings.compression)),
    ]
    optional = [
        ("latmin", poll_settings.lat_min),
        ("latmax", poll_settings.lat_max),
        ("lonmin", poll_settings.lon_min),
        ("lonmax", poll_settings.lon_max),
        ("mmsi", ",".join(mmsi_keys) or None),
        ("imo", ",".join(imo_keys) or None),
        ("interval", poll_settings.age_max),
    ]
    params.extend((name, str(value)) for name, value in optional if value is not None)
    return str(httpx.URL(base_url, params=params))
