"""
Domain models for workflow definitions.

All models use Pydantic for validation and serialization. Attribute names are
snake_case; the markup keys are their kebab-case aliases. State and choice
variants form closed tagged unions discriminated on ``type``.
"""

from datetime import date
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    SerializeAsAny,
    ValidationInfo,
    field_validator,
)


def _scalar_to_str(value: Any) -> Any:
    """Render plain markup scalars as the text they were written as."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    # datetime is a date subclass
    if isinstance(value, date):
        return value.isoformat()
    return value


# Text field that also accepts unquoted YAML and JSON scalars
MarkupStr = Annotated[str, BeforeValidator(_scalar_to_str)]


class MarkupModel(BaseModel):
    """Base for every model that appears in workflow markup."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class StateType(str, Enum):
    """Discriminant of the state variants."""

    EVENT = "EVENT"
    OPERATION = "OPERATION"
    SWITCH = "SWITCH"
    DELAY = "DELAY"
    PARALLEL = "PARALLEL"
    END = "END"
    SUBFLOW = "SUBFLOW"


class ChoiceType(str, Enum):
    """Discriminant of the switch choice variants."""

    SINGLE = "SINGLE"
    AND = "AND"
    OR = "OR"
    NOT = "NOT"


class ActionMode(str, Enum):
    """How the actions of an event or operation are performed."""

    SEQUENTIAL = "SEQUENTIAL"
    PARALLEL = "PARALLEL"


class EndStatus(str, Enum):
    """Completion status reported by an end state."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class Operator(str, Enum):
    """Comparison operators of a single choice."""

    EQ = "EQ"
    LT = "LT"
    LTEQ = "LTEQ"
    GT = "GT"
    GTEQ = "GTEQ"


# ==================== Triggers, functions, actions ====================


class TriggerEvent(MarkupModel):
    """An external event definition a workflow can react to."""

    name: Optional[MarkupStr] = Field(default=None, description="Unique trigger name")
    source: Optional[MarkupStr] = Field(default=None, description="Event source")
    type: Optional[MarkupStr] = Field(default=None, description="Event type")
    correlation_token: Optional[MarkupStr] = Field(
        default=None,
        alias="correlation-token",
        description="Token correlating event instances",
    )


class Function(MarkupModel):
    """Reference to a function invoked by an action."""

    name: Optional[MarkupStr] = Field(default=None, description="Function name")
    type: Optional[MarkupStr] = Field(default=None, description="Function type")
    parameters: dict[str, MarkupStr] = Field(default_factory=dict, description="Parameter mapping")


class Retry(MarkupModel):
    """Retry declaration of an action. Declarative only, never executed here."""

    match: Optional[MarkupStr] = Field(default=None, description="Error match predicate")
    max_retry: Optional[int] = Field(default=None, ge=0, alias="max-retry")
    retry_interval: Optional[int] = Field(default=None, ge=0, alias="retry-interval")
    next_state: Optional[MarkupStr] = Field(
        default=None,
        alias="next-state",
        description="State to transition to once retries are exhausted",
    )


class Action(MarkupModel):
    """A function invocation with timeout and retry declarations."""

    function: Optional[Function] = Field(default=None)
    timeout: Optional[int] = Field(default=None, ge=0, description="Timeout in seconds")
    retry: Optional[Retry] = Field(default=None)


class Filter(MarkupModel):
    """Data filter paths of an operation state."""

    input_path: Optional[MarkupStr] = Field(default=None, alias="input-path")
    result_path: Optional[MarkupStr] = Field(default=None, alias="result-path")
    output_path: Optional[MarkupStr] = Field(default=None, alias="output-path")


class Event(MarkupModel):
    """An event condition of an event state and the actions it triggers."""

    event_expression: Optional[MarkupStr] = Field(
        default=None,
        alias="event-expression",
        description="Boolean expression evaluated against trigger events",
    )
    next_state: Optional[MarkupStr] = Field(default=None, alias="next-state")
    action_mode: ActionMode = Field(default=ActionMode.SEQUENTIAL, alias="action-mode")
    timeout: Optional[int] = Field(default=None, ge=0, description="Timeout in seconds")
    actions: list[Action] = Field(default_factory=list)


# ==================== Switch choices ====================


class SingleChoice(MarkupModel):
    """A single comparison predicate."""

    type: Literal["SINGLE"] = "SINGLE"
    path: Optional[MarkupStr] = Field(default=None, description="Path of the compared value")
    value: Optional[MarkupStr] = Field(default=None, description="Value compared against")
    operator: Optional[Operator] = Field(default=None)
    next_state: Optional[MarkupStr] = Field(default=None, alias="next-state")


class AndChoice(MarkupModel):
    """Matches when all wrapped predicates match."""

    type: Literal["AND"] = "AND"
    and_: list[SingleChoice] = Field(default_factory=list, alias="and")
    next_state: Optional[MarkupStr] = Field(default=None, alias="next-state")


class OrChoice(MarkupModel):
    """Matches when any wrapped predicate matches."""

    type: Literal["OR"] = "OR"
    or_: list[SingleChoice] = Field(default_factory=list, alias="or")
    next_state: Optional[MarkupStr] = Field(default=None, alias="next-state")


class NotChoice(MarkupModel):
    """Matches when the wrapped predicate does not match."""

    type: Literal["NOT"] = "NOT"
    not_: Optional[SingleChoice] = Field(default=None, alias="not")
    next_state: Optional[MarkupStr] = Field(default=None, alias="next-state")


Choice = Annotated[
    Union[SingleChoice, AndChoice, OrChoice, NotChoice],
    Field(discriminator="type"),
]


# ==================== States ====================


class BaseState(MarkupModel):
    """Fields shared by every state variant."""

    name: Optional[MarkupStr] = Field(default=None, description="Unique state name")
    type: StateType = Field(..., description="State variant discriminant")
    start: bool = Field(default=False, description="Whether this is the start state")
    end: bool = Field(default=False, description="Whether this state ends the workflow")


class EventState(BaseState):
    """Waits for trigger events matching one of its event expressions."""

    type: Literal["EVENT"] = "EVENT"
    events: list[Event] = Field(default_factory=list)


class OperationState(BaseState):
    """Performs a list of actions."""

    type: Literal["OPERATION"] = "OPERATION"
    action_mode: ActionMode = Field(default=ActionMode.SEQUENTIAL, alias="action-mode")
    actions: list[Action] = Field(default_factory=list)
    next_state: Optional[MarkupStr] = Field(default=None, alias="next-state")
    filter: Optional[Filter] = Field(default=None)


class SwitchState(BaseState):
    """Picks the next state from its choices, falling back to ``default``."""

    type: Literal["SWITCH"] = "SWITCH"
    choices: list[Choice] = Field(default_factory=list)
    default: Optional[MarkupStr] = Field(default=None, description="Fallback next state")


class DelayState(BaseState):
    """Waits for a fixed duration."""

    type: Literal["DELAY"] = "DELAY"
    time_delay: Optional[int] = Field(
        default=None, ge=0, alias="time-delay", description="Delay in seconds"
    )
    next_state: Optional[MarkupStr] = Field(default=None, alias="next-state")


class EndState(BaseState):
    """Terminates the workflow with a status."""

    type: Literal["END"] = "END"
    status: EndStatus = Field(default=EndStatus.SUCCESS)


class SubflowState(BaseState):
    """Starts another workflow definition."""

    type: Literal["SUBFLOW"] = "SUBFLOW"
    workflow_id: Optional[MarkupStr] = Field(default=None, alias="workflow-id")
    version: Optional[MarkupStr] = Field(default=None)
    wait_for_completion: bool = Field(default=False, alias="wait-for-completion")


class Branch(MarkupModel):
    """A named sequence of states run by a parallel state."""

    name: Optional[MarkupStr] = Field(default=None)
    states: list["State"] = Field(default_factory=list)
    wait_for_completion: bool = Field(default=False, alias="wait-for-completion")


class ParallelState(BaseState):
    """Runs its branches concurrently."""

    type: Literal["PARALLEL"] = "PARALLEL"
    branches: list[Branch] = Field(default_factory=list)
    next_state: Optional[MarkupStr] = Field(default=None, alias="next-state")


State = Annotated[
    Union[
        EventState,
        OperationState,
        SwitchState,
        DelayState,
        ParallelState,
        EndState,
        SubflowState,
    ],
    Field(discriminator="type"),
]

Branch.model_rebuild()
ParallelState.model_rebuild()


# ==================== Extensions and workflow ====================


class Extension(MarkupModel):
    """
    Open record attached to a workflow.

    Concrete shapes subclass this model and are registered by id before
    markup containing them is decoded.
    """

    extension_id: MarkupStr = Field(..., alias="extensionid", description="Registered extension id")


class Workflow(MarkupModel):
    """Complete workflow definition."""

    id: Optional[MarkupStr] = Field(default=None, description="Workflow identifier")
    name: Optional[MarkupStr] = Field(default=None, description="Workflow name")
    version: Optional[MarkupStr] = Field(default=None)
    starts_at: Optional[MarkupStr] = Field(
        default=None, alias="starts-at", description="Name of the start state"
    )
    trigger_defs: list[TriggerEvent] = Field(default_factory=list, alias="trigger-defs")
    states: list[State] = Field(default_factory=list)
    metadata: dict[str, MarkupStr] = Field(default_factory=dict)
    extensions: list[SerializeAsAny[Extension]] = Field(default_factory=list)

    @field_validator("extensions", mode="before")
    @classmethod
    def decode_extensions(cls, v: Any, info: ValidationInfo) -> Any:
        """
        Decode raw extension records into their registered types.

        The registry travels in the validation context under ``"extensions"``.
        Records that are already ``Extension`` instances pass through.
        """
        if not isinstance(v, list):
            return v

        registry = (info.context or {}).get("extensions")
        decoded = []
        for item in v:
            if isinstance(item, Extension):
                decoded.append(item)
                continue
            if not isinstance(item, dict):
                raise ValueError("Extension must be a mapping")

            extension_id = item.get("extensionid", item.get("extension_id"))
            extension_type = registry.get(extension_id) if registry is not None else None
            if extension_type is None:
                raise ValueError(f"No extension registered for id '{extension_id}'")
            decoded.append(extension_type.model_validate(item))
        return decoded

    def get_state(self, name: str) -> Optional[BaseState]:
        """Get state by name."""
        for state in self.states:
            if state.name == name:
                return state
        return None

    def get_trigger(self, name: str) -> Optional[TriggerEvent]:
        """Get trigger definition by name."""
        for trigger in self.trigger_defs:
            if trigger.name == name:
                return trigger
        return None

    def event_states(self) -> list[EventState]:
        """Get event states in declaration order."""
        return [state for state in self.states if isinstance(state, EventState)]
