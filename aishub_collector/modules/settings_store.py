"""Settings file access: load and durably save PollSettings as JSON."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from aishub_collector.errors import SettingsError
from aishub_collector.schemas.poll_settings import PollSettings

logger = logging.getLogger(__name__)


class SettingsStore:
    """Reads and writes the user settings file at *path*."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> PollSettings:
        try:
            contents = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SettingsError(f"Error reading {self.path}: {exc}") from exc
        try:
            return PollSettings.model_validate_json(contents)
        except ValidationError as exc:
            raise SettingsError(f"Error parsing {self.path}: {exc}") from exc

    def save(self, poll_settings: PollSettings) -> None:
        """Replace the settings file atomically.

        The new content is written to a temporary file in the same directory,
        fsynced, then renamed over the old file, so a crash leaves either the
        old or the new settings on disk.
        """
        contents = json.dumps(poll_settings.model_dump(), indent=2) + "\n"
        directory = self.path.parent
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=directory, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(contents)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise SettingsError(f"Error writing {self.path}: {exc}") from exc
        logger.debug("Saved settings to %s", self.path)
