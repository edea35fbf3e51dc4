"""
Svastha - Local preferences.

A small JSON file holding flags that must survive app restarts.
"""

import json
import logging
from pathlib import Path

from onboarding.errors import PreferenceStoreError

logger = logging.getLogger(__name__)

IS_FIRST_RUN_KEY = "is_first_run"


class FilePreferenceStore:
    """PreferenceStore backed by a JSON file."""

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            # An unreadable file counts as "never written"
            logger.warning(f"Ignoring unreadable preferences at {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    async def is_first_run(self) -> bool:
        return bool(self._read().get(IS_FIRST_RUN_KEY, True))

    async def set_first_run(self, value: bool) -> None:
        data = self._read()
        data[IS_FIRST_RUN_KEY] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # The target is only ever replaced whole
            staging = self.path.with_name(self.path.name + ".tmp")
            staging.write_text(json.dumps(data, indent=2), encoding="utf-8")
            staging.replace(self.path)
        except OSError as e:
            raise PreferenceStoreError(f"Could not save preferences: {e}") from e
        logger.debug(f"Saved {IS_FIRST_RUN_KEY}={value} to {self.path}")
