"""
Trigger matching and lookup helpers over a workflow definition.

All functions are pure: they read the workflow and return new collections.
Matching is done by an expression evaluator, which never raises, so a
broken event expression simply does not match.
"""

from typing import Optional

from workflow_definition.core.models import (
    Action,
    BaseState,
    EventState,
    Function,
    TriggerEvent,
    Workflow,
)
from workflow_definition.expression.evaluators import ExpressionEvaluator


# ==================== Matching ====================


def state_matches_trigger(
    event_state: EventState,
    trigger: TriggerEvent,
    evaluator: ExpressionEvaluator,
) -> bool:
    """Check if any event of the state matches the trigger."""
    return any(
        event.event_expression is not None
        and evaluator.evaluate(event.event_expression, trigger)
        for event in event_state.events
    )


def event_states_matching(
    workflow: Workflow,
    trigger: TriggerEvent,
    evaluator: ExpressionEvaluator,
) -> list[EventState]:
    """Event states with at least one event matching the trigger, in declaration order."""
    return [
        state
        for state in workflow.event_states()
        if state_matches_trigger(state, trigger, evaluator)
    ]


def triggers_matching(
    workflow: Workflow,
    event_state: EventState,
    evaluator: ExpressionEvaluator,
) -> list[TriggerEvent]:
    """Trigger definitions matched by any event of the state, in declaration order."""
    return [
        trigger
        for trigger in workflow.trigger_defs
        if state_matches_trigger(event_state, trigger, evaluator)
    ]


def all_matched_triggers(
    workflow: Workflow,
    evaluator: ExpressionEvaluator,
) -> list[TriggerEvent]:
    """
    Every trigger matched by at least one event state.

    Deduplicated by trigger name, keeping first-seen order (states first,
    then triggers).
    """
    matched: dict[Optional[str], TriggerEvent] = {}

    for state in workflow.event_states():
        for trigger in triggers_matching(workflow, state, evaluator):
            matched.setdefault(trigger.name, trigger)

    return list(matched.values())


# ==================== Lookups ====================


def unique_states_by_name(workflow: Workflow) -> dict[str, BaseState]:
    """
    Map state names to states.

    Unnamed states are skipped; on duplicate names the first state wins.
    """
    states: dict[str, BaseState] = {}
    for state in workflow.states:
        if state.name:
            states.setdefault(state.name, state)
    return states


def unique_triggers_by_name(workflow: Workflow) -> dict[str, TriggerEvent]:
    """
    Map trigger names to trigger definitions.

    A workflow without trigger definitions maps to an empty dict.
    """
    triggers: dict[str, TriggerEvent] = {}
    for trigger in workflow.trigger_defs:
        if trigger.name:
            triggers.setdefault(trigger.name, trigger)
    return triggers


def has_states(workflow: Workflow) -> bool:
    return bool(workflow.states)


def has_triggers(workflow: Workflow) -> bool:
    return bool(workflow.trigger_defs)


def state_by_name(workflow: Workflow, name: str) -> Optional[BaseState]:
    return unique_states_by_name(workflow).get(name)


def start_state(workflow: Workflow) -> Optional[BaseState]:
    """
    Get the start state.

    The state named by ``starts-at`` wins; otherwise the first state
    flagged ``start``.
    """
    if workflow.starts_at:
        state = state_by_name(workflow, workflow.starts_at)
        if state is not None:
            return state

    for state in workflow.states:
        if state.start:
            return state
    return None


def has_end_state(workflow: Workflow) -> bool:
    """Whether any state is flagged ``end``, whatever its type."""
    return any(state.end for state in workflow.states)


# ==================== Actions and functions ====================


def actions_for_event_state(event_state: EventState) -> list[Action]:
    """Actions of all events of a state, in declaration order."""
    return [action for event in event_state.events for action in event.actions]


def actions_for_event_states(event_states: list[EventState]) -> list[Action]:
    return [
        action
        for state in event_states
        for action in actions_for_event_state(state)
    ]


def functions_for_actions(actions: list[Action]) -> list[Function]:
    """Functions referenced by actions, skipping actions without one."""
    return [action.function for action in actions if action.function is not None]


def functions_for_event_states(event_states: list[EventState]) -> list[Function]:
    return functions_for_actions(actions_for_event_states(event_states))
