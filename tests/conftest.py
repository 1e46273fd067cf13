"""
Pytest fixtures and configuration for tests.
"""

import json

import pytest

from workflow_definition.config import Environment, Settings
from workflow_definition.manager import WorkflowManager


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        environment=Environment.TEST,
        debug=True,
        log_level="DEBUG",
    )


@pytest.fixture
def manager(test_settings: Settings) -> WorkflowManager:
    """Workflow manager with test settings."""
    return WorkflowManager(settings=test_settings)


@pytest.fixture
def sample_order_workflow() -> dict:
    """Sample workflow: wait for an order event -> process -> end."""
    return {
        "id": "order-workflow",
        "name": "Order Workflow",
        "version": "1.0",
        "trigger-defs": [
            {
                "name": "order-created",
                "source": "shop",
                "type": "order",
                "correlation-token": "order-id",
            },
            {
                "name": "order-cancelled",
                "source": "shop",
                "type": "order",
                "correlation-token": "order-id",
            },
        ],
        "states": [
            {
                "name": "wait-for-order",
                "type": "EVENT",
                "start": True,
                "events": [
                    {
                        "event-expression": "name eq 'order-created'",
                        "next-state": "process-order",
                        "actions": [
                            {
                                "function": {
                                    "name": "reserve-stock",
                                    "type": "http",
                                    "parameters": {"warehouse": "main"},
                                },
                                "timeout": 30,
                            }
                        ],
                    }
                ],
            },
            {
                "name": "process-order",
                "type": "OPERATION",
                "action-mode": "PARALLEL",
                "actions": [
                    {
                        "function": {"name": "charge-card", "type": "http"},
                        "retry": {"match": "timeout", "max-retry": 3, "retry-interval": 5},
                    },
                    {
                        "function": {"name": "send-receipt", "type": "email"},
                    },
                ],
                "next-state": "done",
            },
            {
                "name": "done",
                "type": "END",
                "end": True,
                "status": "SUCCESS",
            },
        ],
        "metadata": {"owner": "orders-team"},
    }


@pytest.fixture
def sample_order_markup(sample_order_workflow: dict) -> str:
    """Sample order workflow as JSON markup."""
    return json.dumps(sample_order_workflow)


@pytest.fixture
def trigger_matching_workflow() -> dict:
    """
    Three triggers and seven event states.

    t1 matches states 1, 2, 3, 4 and 7; t2 matches 2, 4 and 7; t3 matches
    5 and 7; state 6 matches nothing.
    """
    def event_state(index: int, *expressions: str) -> dict:
        return {
            "name": f"state{index}",
            "type": "EVENT",
            "start": index == 1,
            "events": [
                {"event-expression": expression, "next-state": "end"}
                for expression in expressions
            ],
        }

    return {
        "name": "Trigger Matching Workflow",
        "trigger-defs": [
            {"name": "t1", "type": "alpha", "correlation-token": "id"},
            {"name": "t2", "type": "beta", "correlation-token": "id"},
            {"name": "t3", "type": "gamma", "correlation-token": "id"},
        ],
        "states": [
            event_state(1, "name eq 't1'"),
            event_state(2, "name eq 't1' || name eq 't2'"),
            event_state(3, "type == 'alpha'"),
            event_state(4, "name eq 't1'", "name eq 't2'"),
            event_state(5, "name eq 't3'"),
            event_state(6, "name eq 'unknown'"),
            event_state(7, "name in ['t1', 't2', 't3']"),
            {"name": "end", "type": "END", "end": True},
        ],
    }
