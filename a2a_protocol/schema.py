"""This module contains the schema for tasks, messages, artifacts and the agent card.

Every type here is an immutable pydantic model: fields are snake_case in Python and camelCase on the
wire, both spellings are accepted on input, and absent optional fields are omitted on output.
"""

from __future__ import annotations as _annotations

import copy
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal

import pydantic
from pydantic import BeforeValidator, Field, TypeAdapter, field_validator, model_validator
from typing_extensions import Self, TypeAlias

from ._utils import JsonObject, JsonValue, WireModel, now_utc

__all__ = (
    'TaskState',
    'TextPart',
    'FileContent',
    'FilePart',
    'DataPart',
    'Part',
    'part_ta',
    'part_from_wire',
    'Role',
    'Message',
    'Artifact',
    'TaskStatus',
    'Task',
    'AgentProvider',
    'AgentCapabilities',
    'AgentAuthentication',
    'AgentSkill',
    'AgentCard',
    'PushNotificationConfig',
    'TaskPushNotificationConfig',
    'TaskIdParams',
    'TaskQueryParams',
    'TaskSendParams',
    'TaskStatusUpdateEvent',
    'TaskArtifactUpdateEvent',
    'StreamEvent',
)


class TaskState(str, Enum):
    """The state of a task.

    `completed`, `canceled` and `failed` are terminal. `unknown` is only ever used as an initial or
    fallback value, it is not the target of a normal transition.
    """

    SUBMITTED = 'submitted'
    WORKING = 'working'
    INPUT_REQUIRED = 'input-required'
    COMPLETED = 'completed'
    CANCELED = 'canceled'
    FAILED = 'failed'
    UNKNOWN = 'unknown'

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition may follow this state."""
        return self in _TERMINAL_STATES

    def can_transition_to(self, other: TaskState | str) -> bool:
        """Whether moving from this state to `other` is a legal lifecycle step.

        The models never call this themselves, it's for whoever decides the next state of a task.
        """
        return TaskState(other) in _TRANSITIONS[self]


_TERMINAL_STATES = frozenset({TaskState.COMPLETED, TaskState.CANCELED, TaskState.FAILED})

_TRANSITIONS: dict[TaskState, frozenset[TaskState]] = {
    TaskState.SUBMITTED: frozenset({TaskState.WORKING, TaskState.FAILED, TaskState.CANCELED}),
    TaskState.WORKING: frozenset(
        {TaskState.INPUT_REQUIRED, TaskState.COMPLETED, TaskState.FAILED, TaskState.CANCELED}
    ),
    TaskState.INPUT_REQUIRED: frozenset({TaskState.WORKING, TaskState.FAILED, TaskState.CANCELED}),
    TaskState.COMPLETED: frozenset(),
    TaskState.CANCELED: frozenset(),
    TaskState.FAILED: frozenset(),
    # A task in `unknown` may move to any state except `unknown` itself.
    TaskState.UNKNOWN: frozenset(
        {
            TaskState.SUBMITTED,
            TaskState.WORKING,
            TaskState.INPUT_REQUIRED,
            TaskState.COMPLETED,
            TaskState.CANCELED,
            TaskState.FAILED,
        }
    ),
}


class _BasePart(WireModel):
    metadata: JsonObject | None = None
    """Metadata about the part."""


class TextPart(_BasePart):
    """A part that contains text."""

    type: Literal['text'] = 'text'
    text: str


class FileContent(WireModel):
    """The content of a file, either inline base64 encoded bytes or a URI pointing at it.

    Exactly one of `bytes` and `uri` must be set.
    """

    name: str | None = None
    mime_type: str | None = None
    bytes: str | None = None
    """The base64 encoded content of the file."""
    uri: str | None = None

    @model_validator(mode='after')
    def _check_exactly_one_source(self) -> Self:
        if self.bytes is None and self.uri is None:
            raise ValueError('Either bytes or uri must be provided')
        if self.bytes is not None and self.uri is not None:
            raise ValueError('Only one of bytes or uri can be provided, not both')
        return self


class FilePart(_BasePart):
    """A part that contains a file."""

    type: Literal['file'] = 'file'
    file: FileContent


class DataPart(_BasePart):
    """A part that contains structured data, e.g. the fields of a form."""

    type: Literal['data'] = 'data'
    data: JsonValue
    """Any JSON value except `null`."""

    @field_validator('data')
    @classmethod
    def _check_not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError('data must not be null')
        return value


PART_TYPES = frozenset({'text', 'file', 'data'})


def _check_part_type(value: Any) -> Any:
    if isinstance(value, dict):
        part_type = value.get('type')
        if part_type not in PART_TYPES:
            raise ValueError(f'Unknown part type: {part_type}')
    return value


Part: TypeAlias = Annotated[
    TextPart | FilePart | DataPart,
    pydantic.Discriminator('type'),
    BeforeValidator(_check_part_type),
]
"""A fragment of content in a message or artifact, selected by its `type` field."""

part_ta: TypeAdapter[Part] = TypeAdapter(Part)


def part_from_wire(data: Any) -> Part:
    """Build the right kind of part from its wire form, dispatching on `type`."""
    return part_ta.validate_python(data)


def _join_text(parts: tuple[Part, ...]) -> str:
    return '\n'.join(part.text for part in parts if isinstance(part, TextPart))


Role: TypeAlias = Literal['user', 'agent']


class Message(WireModel):
    """A single turn of communication between a client (`user`) and an agent (`agent`)."""

    role: Role
    parts: tuple[Part, ...]
    metadata: JsonObject | None = None

    @classmethod
    def of_text(cls, role: Role, text: str, metadata: dict[str, Any] | None = None) -> Message:
        """Build a message made of a single text part."""
        return cls(role=role, parts=(TextPart(text=text),), metadata=metadata)

    @property
    def text(self) -> str:
        """The text of all text parts, joined by newlines."""
        return _join_text(self.parts)


class Artifact(WireModel):
    """An output generated by an agent, or one chunk of a streamed output.

    The chunk fields are informational: whoever reassembles a stream applies chunks in `index` order,
    concatenates onto the previous chunk when `append` is set and stops at `last_chunk`.
    """

    name: str | None = None
    description: str | None = None
    parts: tuple[Part, ...] = ()
    index: int = 0
    append: bool | None = None
    last_chunk: bool | None = None
    metadata: JsonObject | None = None

    @property
    def text(self) -> str:
        """The text of all text parts, joined by newlines."""
        return _join_text(self.parts)


class TaskStatus(WireModel):
    """The status of a task at a point in time."""

    state: TaskState
    message: Message | None = None
    """Additional information about the state, e.g. the question asked when input is required."""
    timestamp: str = Field(default_factory=lambda: now_utc().isoformat())
    """ISO 8601 timestamp of when the status was recorded."""

    @field_validator('timestamp', mode='before')
    @classmethod
    def _format_timestamp(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        return value


class Task(WireModel):
    """A unit of work, identified by its `id`.

    Tasks are never modified in place: a change of state is a new `Task` with the same `id` and
    `session_id` and a new `TaskStatus`, see `with_status`. The copy shares no mutable data with the original.
    """

    id: str
    session_id: str | None = None
    """Groups related tasks, e.g. the turns of a conversation."""
    status: TaskStatus
    artifacts: tuple[Artifact, ...] | None = None
    metadata: JsonObject | None = None

    @property
    def state(self) -> TaskState:
        return self.status.state

    def with_status(self, status: TaskStatus) -> Task:
        """Return a copy of this task with a new status, all other fields unchanged.

        Transition legality is not checked here, see `TaskState.can_transition_to`.
        """
        return self._evolve(status=status)

    def with_state(self, state: TaskState | str, message: Message | None = None) -> Task:
        """Return a copy of this task with a freshly timestamped status in `state`."""
        return self.with_status(TaskStatus(state=TaskState(state), message=message))

    def with_artifacts(self, *artifacts: Artifact) -> Task:
        """Return a copy of this task with `artifacts` appended to its artifacts."""
        return self._evolve(artifacts=(*(self.artifacts or ()), *artifacts))

    def _evolve(self, **changes: Any) -> Task:
        return type(self).model_validate(copy.deepcopy({**dict(self), **changes}))


class AgentProvider(WireModel):
    """The service provider of the agent."""

    organization: str
    url: str | None = None


class AgentCapabilities(WireModel):
    """The optional protocol features an agent supports."""

    streaming: bool = False
    """Whether the agent supports `tasks/sendSubscribe`."""
    push_notifications: bool = False
    """Whether the agent can push task updates to a webhook."""
    state_transition_history: bool = False
    """Whether the agent exposes the history of status changes of a task."""


class AgentAuthentication(WireModel):
    """The authentication schemes an agent (or a webhook) accepts."""

    schemes: tuple[str, ...]
    credentials: str | None = None


class AgentSkill(WireModel):
    """A skill that an agent can perform."""

    id: str
    name: str
    description: str | None = None
    tags: tuple[str, ...] | None = None
    examples: tuple[str, ...] | None = None
    """Example prompts the skill can handle."""
    input_modes: tuple[str, ...] | None = None
    """Overrides the card's `default_input_modes` for this skill."""
    output_modes: tuple[str, ...] | None = None
    """Overrides the card's `default_output_modes` for this skill."""


class AgentCard(WireModel):
    """The card that describes an agent, usually served at `/.well-known/agent.json`."""

    name: str
    """Human readable name of the agent e.g. "Recipe Agent"."""

    url: str
    """A URL to the address the agent is hosted at."""

    version: str
    """The version of the agent - format is up to the provider. (e.g. "1.0.0")"""

    description: str | None = None
    provider: AgentProvider | None = None
    documentation_url: str | None = None
    capabilities: AgentCapabilities
    authentication: AgentAuthentication | None = None

    default_input_modes: tuple[str, ...] = ('text',)
    """Supported content types for input, unless a skill says otherwise."""

    default_output_modes: tuple[str, ...] = ('text',)
    """Supported content types for output, unless a skill says otherwise."""

    skills: tuple[AgentSkill, ...]

    def get_skill(self, skill_id: str) -> AgentSkill | None:
        return next((skill for skill in self.skills if skill.id == skill_id), None)

    def supports_input_mode(self, mode: str) -> bool:
        return mode in self.default_input_modes

    def supports_output_mode(self, mode: str) -> bool:
        return mode in self.default_output_modes


class PushNotificationConfig(WireModel):
    """Where and how to deliver out-of-band task updates.

    The URL is not checked here; callers are expected to require HTTPS in production.
    """

    url: str
    token: str | None = None
    """Token sent back with every notification, so the receiver can recognise the task."""
    authentication: AgentAuthentication | None = None


class TaskPushNotificationConfig(WireModel):
    """The push notification configuration of a single task."""

    id: str
    push_notification_config: PushNotificationConfig


class TaskIdParams(WireModel):
    """Parameters for methods that only need a task id, e.g. `tasks/cancel`."""

    id: str
    metadata: JsonObject | None = None


class TaskQueryParams(TaskIdParams):
    """Parameters for `tasks/get` and `tasks/resubscribe`."""

    history_length: int | None = None


class TaskSendParams(WireModel):
    """Parameters for `tasks/send` and `tasks/sendSubscribe`."""

    id: str
    session_id: str | None = None
    message: Message
    history_length: int | None = None
    push_notification: PushNotificationConfig | None = None
    metadata: JsonObject | None = None


class TaskStatusUpdateEvent(WireModel):
    """Sent by a streaming agent when the status of a task changes."""

    id: str
    status: TaskStatus
    final: bool = False
    """Whether this is the last event of the stream."""
    metadata: JsonObject | None = None


class TaskArtifactUpdateEvent(WireModel):
    """Sent by a streaming agent when it produces an artifact, or a chunk of one."""

    id: str
    artifact: Artifact
    final: bool = False
    metadata: JsonObject | None = None


StreamEvent: TypeAlias = TaskStatusUpdateEvent | TaskArtifactUpdateEvent
"""An update sent over a stream by `tasks/sendSubscribe` and `tasks/resubscribe`."""
