"""
JSON persistence for the current game session.

Environment variables:
  BOARDSYNC_STATE_FILE  Session file path (default: ~/.boardsync/session.json)
"""

import json
import logging
import os
from pathlib import Path

from boardsync.core.models import GameSession


logger = logging.getLogger(__name__)

DEFAULT_STATE_FILE = Path.home() / ".boardsync" / "session.json"


def default_store_path(env: dict[str, str] | None = None) -> Path:
    env = env if env is not None else os.environ
    raw = env.get("BOARDSYNC_STATE_FILE")
    return Path(raw).expanduser() if raw else DEFAULT_STATE_FILE


class JsonSessionStore:
    """Stores one GameSession as a JSON document."""

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else default_store_path()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> GameSession | None:
        """Load the stored session, or None if absent or unreadable."""
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return GameSession.from_dict(data)
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self._path}: {e}")
            return None

    def save(self, session: GameSession) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(".tmp")
            tmp_path.write_text(json.dumps(session.to_dict(), indent=2), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as e:
            logger.error(f"Failed to save session to {self._path}: {e}")
