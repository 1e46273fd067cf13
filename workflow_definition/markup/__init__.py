"""Workflow markup encoding and decoding."""

from workflow_definition.markup.codec import DecodeAttempt, MarkupCodec
from workflow_definition.markup.extensions import ExtensionRegistry

__all__ = ["DecodeAttempt", "ExtensionRegistry", "MarkupCodec"]
