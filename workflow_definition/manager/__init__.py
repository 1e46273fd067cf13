"""Workflow manager facade."""

from workflow_definition.manager.workflow_manager import WorkflowManager

__all__ = ["WorkflowManager"]
