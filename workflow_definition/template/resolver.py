"""
Sandboxed property placeholder resolution for workflow markup.

Resolves {{ property.key }} syntax in markup string values without eval/exec.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from workflow_definition.core.exceptions import PropertyResolutionError
from workflow_definition.template.property_source import PropertySource

logger = logging.getLogger(__name__)

PropertyLookup = Callable[[str], Optional[str]]


@dataclass
class PropertyReference:
    """Represents a parsed placeholder reference."""

    full_match: str
    root: str
    key: str  # Flat property name, e.g. "wf.trigger.name"
    start_pos: int
    end_pos: int


class PropertyResolver:
    """
    Resolves property placeholders in decoded markup.

    Supports:
    - {{ property.key }} - Value of ``key`` from the property source
    - {{ env.NAME }} - Value of a whitelisted environment variable

    Keys are flat; dots are part of the key, not a path.

    Security:
    - No eval/exec
    - Restricted to the property source and whitelisted variables
    """

    # Pattern to match {{ reference }}
    TEMPLATE_PATTERN = re.compile(r"\{\{\s*([^}]+?)\s*\}\}")

    # Pattern to validate reference format
    REFERENCE_PATTERN = re.compile(r"^(property|env)\.([a-zA-Z0-9_][a-zA-Z0-9_.\-]*)$")

    def __init__(
        self,
        lookup: PropertyLookup,
        env_vars: Optional[dict[str, str]] = None,
        strict: bool = False,
    ):
        """
        Initialize resolver.

        Args:
            lookup: Function returning the value of a property, or None
            env_vars: Safe environment variables (whitelist only)
            strict: Raise on unknown keys instead of leaving the placeholder
        """
        self.lookup = lookup
        self.env_vars = env_vars or {}
        self.strict = strict

    @classmethod
    def from_source(cls, source: PropertySource, **kwargs: Any) -> "PropertyResolver":
        """Build a resolver backed by a property source."""
        return cls(source.get, **kwargs)

    def resolve(self, template: Any) -> Any:
        """
        Resolve all placeholders in a value.

        Handles strings, dicts, and lists recursively. Mapping keys are left as-is.
        """
        if isinstance(template, str):
            return self._resolve_string(template)
        elif isinstance(template, dict):
            return {k: self.resolve(v) for k, v in template.items()}
        elif isinstance(template, list):
            return [self.resolve(v) for v in template]
        else:
            return template

    def _resolve_string(self, template: str) -> str:
        """Resolve placeholders in a string."""
        references = self.find_references(template)

        if not references:
            return template

        result = template
        for ref in reversed(references):  # Reverse to maintain positions
            value = self._resolve_reference(ref)
            if value is None:
                continue
            result = result[:ref.start_pos] + value + result[ref.end_pos:]

        return result

    def find_references(self, template: str) -> list[PropertyReference]:
        """Find all placeholder references in a string."""
        references = []

        for match in self.TEMPLATE_PATTERN.finditer(template):
            parsed = self.REFERENCE_PATTERN.match(match.group(1).strip())
            if parsed:
                references.append(PropertyReference(
                    full_match=match.group(0),
                    root=parsed.group(1),
                    key=parsed.group(2),
                    start_pos=match.start(),
                    end_pos=match.end(),
                ))

        return references

    def _resolve_reference(self, ref: PropertyReference) -> Optional[str]:
        """Resolve a single reference to its value, None leaves it in place."""
        if ref.root == "env":
            value = self.env_vars.get(ref.key)
        else:
            value = self.lookup(ref.key)

        if value is None:
            if self.strict:
                raise PropertyResolutionError(
                    f"Unknown {ref.root} key '{ref.key}' in placeholder {ref.full_match}",
                    key=ref.key,
                )
            logger.debug(f"No value for {ref.full_match}, leaving placeholder in place")
            return None

        return str(value)


def resolve_markup_properties(
    document: Any,
    source: PropertySource,
    env_vars: Optional[dict[str, str]] = None,
) -> Any:
    """
    Resolve all placeholders in a decoded markup document.

    Convenience function for the codec.
    """
    resolver = PropertyResolver(source.get, env_vars=env_vars)

    return resolver.resolve(document)
