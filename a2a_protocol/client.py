from __future__ import annotations as _annotations

import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from pydantic import TypeAdapter

from .protocol import (
    CANCEL_TASK,
    GET_PUSH_NOTIFICATION,
    GET_TASK,
    RESUBSCRIBE,
    SEND_TASK,
    SEND_TASK_SUBSCRIBE,
    SET_PUSH_NOTIFICATION,
    JSONRPCRequest,
    JSONRPCResponse,
)
from .schema import (
    AgentCard,
    Message,
    PushNotificationConfig,
    StreamEvent,
    Task,
    TaskIdParams,
    TaskPushNotificationConfig,
    TaskQueryParams,
    TaskSendParams,
)

__all__ = ('A2AClient',)

logger = logging.getLogger(__name__)


class A2AClient(ABC):
    """A client for the A2A protocol.

    This class builds requests and decodes responses; moving them to and from the agent is up to
    subclasses, which implement `send_request`, `stream_request` and `discover` over their transport.
    Error responses are raised as the matching exception from `a2a_protocol.exceptions`.
    """

    def __init__(self, agent_url: str) -> None:
        self.agent_url = agent_url
        self.agent_card: AgentCard | None = None

    @abstractmethod
    async def discover(self) -> AgentCard:
        """Fetch the agent card, usually from `/.well-known/agent.json` under `agent_url`."""

    @abstractmethod
    async def send_request(self, request: JSONRPCRequest) -> JSONRPCResponse:
        """Send a request and wait for its response."""

    @abstractmethod
    def stream_request(self, request: JSONRPCRequest) -> AsyncIterator[JSONRPCResponse]:
        """Send a request to a streaming method and yield each response as it arrives."""

    async def get_agent_card(self) -> AgentCard:
        """The agent card, discovered on first use."""
        if self.agent_card is None:
            self.agent_card = await self.discover()
        return self.agent_card

    async def send_task(
        self,
        message: Message,
        *,
        task_id: str | None = None,
        session_id: str | None = None,
        history_length: int | None = None,
        push_notification: PushNotificationConfig | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Task:
        """Send a message to the agent, starting a new task unless `task_id` is given."""
        params = TaskSendParams(
            id=task_id or str(uuid.uuid4()),
            session_id=session_id,
            message=message,
            history_length=history_length,
            push_notification=push_notification,
            metadata=metadata,
        )
        response = await self.send_request(self.build_request(SEND_TASK, params))
        return self.unwrap(response, Task)

    async def send_task_subscribe(
        self,
        message: Message,
        *,
        task_id: str | None = None,
        session_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Like `send_task`, but yields the status and artifact updates of the task as they happen."""
        params = TaskSendParams(
            id=task_id or str(uuid.uuid4()), session_id=session_id, message=message, metadata=metadata
        )
        async for response in self.stream_request(self.build_request(SEND_TASK_SUBSCRIBE, params)):
            yield self.unwrap(response, StreamEvent)

    async def resubscribe(self, task_id: str, history_length: int | None = None) -> AsyncIterator[StreamEvent]:
        params = TaskQueryParams(id=task_id, history_length=history_length)
        async for response in self.stream_request(self.build_request(RESUBSCRIBE, params)):
            yield self.unwrap(response, StreamEvent)

    async def get_task(self, task_id: str, history_length: int | None = None) -> Task:
        """Retrieves a task from the agent."""
        params = TaskQueryParams(id=task_id, history_length=history_length)
        response = await self.send_request(self.build_request(GET_TASK, params))
        return self.unwrap(response, Task)

    async def cancel_task(self, task_id: str) -> Task:
        response = await self.send_request(self.build_request(CANCEL_TASK, TaskIdParams(id=task_id)))
        return self.unwrap(response, Task)

    async def set_push_notification(self, task_id: str, config: PushNotificationConfig) -> TaskPushNotificationConfig:
        params = TaskPushNotificationConfig(id=task_id, push_notification_config=config)
        response = await self.send_request(self.build_request(SET_PUSH_NOTIFICATION, params))
        return self.unwrap(response, TaskPushNotificationConfig)

    async def get_push_notification(self, task_id: str) -> TaskPushNotificationConfig:
        response = await self.send_request(self.build_request(GET_PUSH_NOTIFICATION, TaskIdParams(id=task_id)))
        return self.unwrap(response, TaskPushNotificationConfig)

    @staticmethod
    def build_request(method: str, params: Any = None) -> JSONRPCRequest:
        """Build a request with a fresh id; model params are serialized with `to_wire`."""
        to_wire = getattr(params, 'to_wire', None)
        if callable(to_wire):
            params = to_wire()
        return JSONRPCRequest(id=str(uuid.uuid4()), method=method, params=params)

    @staticmethod
    def unwrap(response: JSONRPCResponse, result_type: Any) -> Any:
        """Return the result of `response` validated as `result_type`, or raise the error it carries."""
        if response.error is not None:
            exc = response.error.to_exception()
            logger.debug('A2A request %r failed: %r', response.id, exc)
            raise exc
        return TypeAdapter(result_type).validate_python(response.result)
