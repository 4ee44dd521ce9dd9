"""Plain-text cache for values remembered between invocations.

Each key is stored in its own dot-file inside the cache directory so the
values stay readable and editable by hand.
"""

from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

COMPOSER_NAME_KEY = "COMPOSER_NAME"
COMPOSER_LOCATION_KEY = "COMPOSER_LOCATION"


class ConfigCache:
    """Best-effort key/value store backed by one file per key."""

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir).expanduser()

    def path_for(self, key: str) -> Path:
        return self.cache_dir / f".{key}"

    def load(self, key: str) -> str:
        """Return the last saved value, or an empty string.

        Missing and unreadable files are treated the same way; this never
        raises.
        """
        try:
            return self.path_for(key).read_text(encoding="utf-8").rstrip("\n")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("cache.miss", key=key, reason=str(e))
            return ""

    def save(self, key: str, value: str) -> None:
        """Overwrite the stored value. Write failures are logged, not raised."""
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self.path_for(key).write_text(f"{value}\n", encoding="utf-8")
        except OSError as e:
            logger.warning("cache.write_failed", key=key, path=str(self.path_for(key)), error=str(e))
