"""
Workflow Definition Toolkit

Declarative workflow definitions with JSON/YAML markup round-tripping,
two-phase validation that accumulates diagnostics, and trigger matching
through pluggable expression evaluators.
"""

__version__ = "1.0.0"
