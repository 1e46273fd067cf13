"""
Flat name -> value lookup backing markup property placeholders.
"""

import logging
from pathlib import Path
from typing import Iterator, Mapping, Optional

logger = logging.getLogger(__name__)


class PropertySource(Mapping[str, str]):
    """
    Read-only property table.

    Loaded from a ``key=value`` (or ``key: value``) file or built from a mapping.
    """

    COMMENT_PREFIXES = ("#", "!")

    def __init__(self, properties: Optional[Mapping[str, str]] = None):
        self._properties: dict[str, str] = dict(properties or {})

    @classmethod
    def from_file(cls, path: Path | str) -> "PropertySource":
        """
        Load properties from a file.

        A missing file yields an empty source and a warning.
        """
        path = Path(path)
        if not path.is_file():
            logger.warning(f"Unable to find {path}. No property source available.")
            return cls()

        with path.open(encoding="utf-8") as handle:
            return cls.from_text(handle.read())

    @classmethod
    def from_text(cls, text: str) -> "PropertySource":
        """Parse ``key=value`` lines. Blank and comment lines are skipped."""
        properties: dict[str, str] = {}

        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith(cls.COMMENT_PREFIXES):
                continue

            separators = [pos for pos in (line.find("="), line.find(":")) if pos > 0]
            if not separators:
                logger.warning(f"Ignoring malformed property line: {line}")
                continue

            split_at = min(separators)
            key = line[:split_at].strip()
            properties[key] = line[split_at + 1:].strip()

        return cls(properties)

    def __getitem__(self, key: str) -> str:
        return self._properties[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._properties)

    def __len__(self) -> int:
        return len(self._properties)
