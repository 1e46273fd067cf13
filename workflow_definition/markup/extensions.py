"""
Registry of workflow extension types keyed by extension id.
"""

import logging
from typing import Iterator, Optional

from workflow_definition.core.models import Extension

logger = logging.getLogger(__name__)


class ExtensionRegistry:
    """
    Maps extension ids to the ``Extension`` subclass that decodes them.

    Must be populated before markup containing those ids is decoded.
    """

    def __init__(self, extensions: Optional[dict[str, type[Extension]]] = None):
        self._extensions: dict[str, type[Extension]] = {}
        for extension_id, extension_type in (extensions or {}).items():
            self.register(extension_id, extension_type)

    def register(self, extension_id: str, extension_type: type[Extension]) -> None:
        """Register (or replace) the type decoding ``extension_id``."""
        if not extension_id:
            raise ValueError("Extension id must not be empty")
        if not (isinstance(extension_type, type) and issubclass(extension_type, Extension)):
            raise TypeError(f"{extension_type!r} is not an Extension subclass")

        if extension_id in self._extensions:
            logger.info(f"Replacing extension type for id '{extension_id}'")
        self._extensions[extension_id] = extension_type

    def get(self, extension_id: Optional[str]) -> Optional[type[Extension]]:
        """Get the registered type, or None."""
        if extension_id is None:
            return None
        return self._extensions.get(extension_id)

    def __contains__(self, extension_id: object) -> bool:
        return extension_id in self._extensions

    def __iter__(self) -> Iterator[str]:
        return iter(self._extensions)

    def __len__(self) -> int:
        return len(self._extensions)
