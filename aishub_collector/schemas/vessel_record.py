"""Pydantic model for one AISHub vessel observation.

Defaults are the AIS "not available" values documented at
https://www.aishub.net/api. Consumers rely on them, so a record built with
no fields set must equal the canonical unknown vessel.
"""
from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, Field


class VesselField(IntEnum):
    """Canonical field order, also the column order of every series file."""

    BOW_DISTANCE = 0
    STERN_DISTANCE = 1
    PORT_DISTANCE = 2
    CALLSIGN = 3
    COURSE_OVER_GROUND = 4
    STARBOARD_DISTANCE = 5
    DESTINATION = 6
    DRAUGHT = 7
    DEVICE_TYPE = 8
    ESTIMATED_ARRIVAL = 9
    HEADING = 10
    IMO_NUMBER = 11
    LATITUDE_TEXT = 12
    LONGITUDE_TEXT = 13
    MMSI_NUMBER = 14
    NAME = 15
    NAVIGATIONAL_STATUS = 16
    POSITION_ACCURACY = 17
    RATE_OF_TURN = 18
    SPEED_OVER_GROUND = 19
    TIMESTAMP = 20
    VESSEL_TYPE = 21

    @property
    def tag(self) -> str:
        """AISHub column name for this field."""
        return _TAGS[self]

    @property
    def attribute(self) -> str:
        """VesselRecord attribute holding this field."""
        return self.name.lower()


_TAGS: dict[VesselField, str] = {
    VesselField.BOW_DISTANCE: "A",
    VesselField.STERN_DISTANCE: "B",
    VesselField.PORT_DISTANCE: "C",
    VesselField.CALLSIGN: "CALLSIGN",
    VesselField.COURSE_OVER_GROUND: "COG",
    VesselField.STARBOARD_DISTANCE: "D",
    VesselField.DESTINATION: "DEST",
    VesselField.DRAUGHT: "DRAUGHT",
    VesselField.DEVICE_TYPE: "DEVICE",
    VesselField.ESTIMATED_ARRIVAL: "ETA",
    VesselField.HEADING: "HEADING",
    VesselField.IMO_NUMBER: "IMO",
    VesselField.LATITUDE_TEXT: "LATITUDE",
    VesselField.LONGITUDE_TEXT: "LONGITUDE",
    VesselField.MMSI_NUMBER: "MMSI",
    VesselField.NAME: "NAME",
    VesselField.NAVIGATIONAL_STATUS: "NAVSTAT",
    VesselField.POSITION_ACCURACY: "PAC",
    VesselField.RATE_OF_TURN: "ROT",
    VesselField.SPEED_OVER_GROUND: "SOG",
    # The two tags that do not follow the field name
    VesselField.TIMESTAMP: "TSTAMP",
    VesselField.VESSEL_TYPE: "TYPE",
}

CSV_HEADER: list[str] = [f.tag for f in VesselField]

FIELD_BY_TAG: dict[str, VesselField] = {f.tag: f for f in VesselField}


class VesselRecord(BaseModel):
    """One observation of one vessel. Units follow the AIS data format."""

    # Dimensions from the reference point (meters)
    bow_distance: int = Field(default=0, ge=0)
    stern_distance: int = Field(default=0, ge=0)
    port_distance: int = Field(default=0, ge=0)
    callsign: str = ""
    # Degrees; 360.0 = not available
    course_over_ground: float = 360.0
    starboard_distance: int = Field(default=0, ge=0)
    destination: str = ""
    # 1/10 meters
    draught: int = Field(default=0, ge=0)
    device_type: str = ""
    estimated_arrival: int = Field(default=0, ge=0)
    # Degrees; 511 = not available
    heading: int = Field(default=511, ge=0)
    imo_number: int = Field(default=0, ge=0)
    latitude_text: str = ""
    longitude_text: str = ""
    mmsi_number: int = Field(default=0, ge=0)
    name: str = ""
    navigational_status: str = ""
    # 0 = low accuracy (also assumed when unknown), 1 = high
    position_accuracy: int = Field(default=0, ge=0, le=1)
    rate_of_turn: str = ""
    # 1/10 knots; 1024 = not available
    speed_over_ground: int = Field(default=1024, ge=0)
    # Unix epoch seconds
    timestamp: int = Field(default=0, ge=0)
    vessel_type: int = Field(default=0, ge=0)

    def to_row(self) -> list[str]:
        """Render as CSV cells in canonical field order."""
        return [str(getattr(self, f.attribute)) for f in VesselField]
