"""Pydantic schema for the user settings file (settings.json)."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class PollSettings(BaseModel):
    """AISHub request parameters and the polling interval.

    Reloaded at the start of every poll cycle, so edits to the file take
    effect without a restart.
    """

    api_key: str
    # Minutes between requests
    update_interval: int = Field(ge=1)
    # 0 = AIS format, 1 = human readable
    data_value_format: int = Field(default=0, ge=0, le=1)
    output_format: str = "csv"
    # 0 = none, 1 = ZIP, 2 = GZIP, 3 = BZIP2
    compression: int = Field(default=0, ge=0, le=3)
    lat_min: Optional[float] = None
    lat_max: Optional[float] = None
    lon_min: Optional[float] = None
    lon_max: Optional[float] = None
    # Only return positions younger than this many minutes
    age_max: Optional[int] = Field(default=None, ge=0)

    @field_validator("api_key")
    @classmethod
    def api_key_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("api_key must not be empty")
        return v
