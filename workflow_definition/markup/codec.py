"""
Markup codec: JSON / YAML text <-> Workflow model.

Decoding tries JSON first and falls back to YAML. Each attempt yields an
explicit result; MarkupError is raised only when both attempts fail.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import yaml
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from workflow_definition.core.exceptions import MarkupError, PropertyResolutionError
from workflow_definition.core.models import Workflow
from workflow_definition.markup.extensions import ExtensionRegistry
from workflow_definition.template.resolver import PropertyResolver

logger = logging.getLogger(__name__)


@dataclass
class DecodeAttempt:
    """Outcome of decoding markup in one format."""

    format: str
    workflow: Optional[Workflow] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.workflow is not None


class MarkupCodec:
    """
    Converts workflow markup to and from the Workflow model.

    Encoding is deterministic: keys follow model declaration order, and
    ``None`` values as well as empty list and mapping fields are left out.
    Nested models are written even when empty.
    """

    def __init__(
        self,
        extensions: Optional[ExtensionRegistry] = None,
        resolver: Optional[PropertyResolver] = None,
    ):
        self.extensions = extensions if extensions is not None else ExtensionRegistry()
        self.resolver = resolver

    # ==================== Decoding ====================

    def decode(self, text: str) -> Workflow:
        """
        Decode markup text into a Workflow.

        Raises:
            MarkupError: If the text is neither a JSON nor a YAML workflow
        """
        if not isinstance(text, str):
            raise MarkupError(
                f"Markup must be text, got {type(text).__name__}",
                errors=[],
            )

        attempts = [self.try_decode_json(text)]
        if not attempts[-1].succeeded:
            attempts.append(self.try_decode_yaml(text))

        for attempt in attempts:
            if attempt.succeeded:
                return attempt.workflow

        errors = [f"{attempt.format}: {attempt.error}" for attempt in attempts]
        logger.debug(f"Markup decode failed: {errors}")
        raise MarkupError("Could not convert markup to Workflow.", errors=errors)

    def try_decode_json(self, text: str) -> DecodeAttempt:
        """Decode text as a JSON workflow document."""
        return self._attempt("json", text, json.loads, (json.JSONDecodeError,))

    def try_decode_yaml(self, text: str) -> DecodeAttempt:
        """Decode text as a YAML workflow document."""
        return self._attempt("yaml", text, yaml.safe_load, (yaml.YAMLError,))

    def _attempt(
        self,
        format: str,
        text: str,
        parse: Callable[[str], Any],
        parse_errors: tuple[type[Exception], ...],
    ) -> DecodeAttempt:
        try:
            document = parse(text)
        except parse_errors as e:
            return DecodeAttempt(format, error=str(e))

        return self.from_document(document, format=format)

    def from_document(self, document: Any, format: str = "document") -> DecodeAttempt:
        """Build a Workflow from an already parsed markup document."""
        if not isinstance(document, dict):
            return DecodeAttempt(
                format,
                error=f"Expected a mapping at the top level, got {type(document).__name__}",
            )

        if self.resolver is not None:
            try:
                document = self.resolver.resolve(document)
            except PropertyResolutionError as e:
                return DecodeAttempt(format, error=str(e))

        try:
            workflow = Workflow.model_validate(
                document,
                context={"extensions": self.extensions},
            )
        except PydanticValidationError as e:
            return DecodeAttempt(format, error=str(e))

        return DecodeAttempt(format, workflow=workflow)

    # ==================== Encoding ====================

    def to_document(self, workflow: Workflow) -> dict[str, Any]:
        """Canonical structured form of a workflow."""
        data = workflow.model_dump(mode="json", by_alias=True, exclude_none=True)
        return _prune_empty(workflow, data)

    def encode(self, workflow: Workflow) -> str:
        """Encode a workflow as JSON markup."""
        return json.dumps(self.to_document(workflow), indent=2, ensure_ascii=False)

    def encode_alternate_format(self, workflow: Workflow) -> str:
        """Encode a workflow as YAML markup."""
        return yaml.safe_dump(
            self.to_document(workflow),
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        )


def _prune_empty(value: Any, data: Any) -> Any:
    """
    Drop empty list and mapping fields from dumped model data, recursively.

    Walks the model alongside its dump so that only collection fields are
    pruned. Nested models are kept even when all of their fields are unset.
    """
    if isinstance(value, BaseModel):
        pruned = {}
        for name, field in type(value).model_fields.items():
            key = field.serialization_alias or field.alias or name
            if key not in data:
                continue
            item = getattr(value, name)
            if isinstance(item, (list, dict)) and not item:
                continue
            pruned[key] = _prune_empty(item, data[key])
        return pruned
    if isinstance(value, list):
        # List items are kept even when empty so positions survive
        return [_prune_empty(item, item_data) for item, item_data in zip(value, data)]
    return data
