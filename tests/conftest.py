"""Shared fixtures: a settings file and a ship list in a temporary directory."""
import json

import pytest


DEFAULT_SETTINGS = {
    "api_key": "AH_TEST_KEY",
    "update_interval": 2,
    "data_value_format": 0,
    "output_format": "csv",
    "compression": 0,
    "lat_min": None,
    "lat_max": None,
    "lon_min": None,
    "lon_max": None,
    "age_max": None,
}


@pytest.fixture
def settings_file(tmp_path):
    """settings.json with a 2 minute interval and no filters."""
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(DEFAULT_SETTINGS))
    return path


@pytest.fixture
def ships_file(tmp_path):
    """ships.csv tracking one vessel by IMO and one by MMSI."""
    path = tmp_path / "ships.csv"
    path.write_text("IMO,MMSI\n9000001,\n,123456789\n")
    return path


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"
