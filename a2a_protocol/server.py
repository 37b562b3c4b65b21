"""This module defines the A2AServer class, the transport independent side of an A2A agent.

A transport (an HTTP endpoint, a queue consumer, an in-process call) hands the raw JSON-RPC payload to
`A2AServer.handle_request` (or `A2AServer.handle_stream` for streaming methods) and sends back whatever
response it gets. The server takes care of the protocol:

1. The payload is parsed as JSON, failing with `JSONParseError`
2. The JSON is validated as a JSON-RPC request, failing with `InvalidRequestError`
3. The method is looked up, failing with `MethodNotFoundError`
4. The params are validated against the method's params model, failing with `InvalidParamsError`
5. The matching `on_*` handler is awaited and its result wrapped in a response

Whatever is raised along the way, by the server or by a handler, ends up as the `error` of the
response. Handlers signal protocol errors by raising the exceptions from `a2a_protocol.exceptions`,
anything else is reported as an internal error and logged.
"""

from __future__ import annotations as _annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from typing import Any, Union

import pydantic_core
from opentelemetry.trace import Status, StatusCode, get_tracer
from pydantic import ValidationError
from typing_extensions import TypeAlias

from ._utils import WireModel
from .exceptions import (
    A2AError,
    InvalidParamsError,
    InvalidRequestError,
    JSONParseError,
    MethodNotFoundError,
    PushNotificationNotSupportedError,
    TaskNotCancelableError,
    UnsupportedOperationError,
)
from .protocol import (
    CANCEL_TASK,
    GET_PUSH_NOTIFICATION,
    GET_TASK,
    RESUBSCRIBE,
    SEND_TASK,
    SEND_TASK_SUBSCRIBE,
    SET_PUSH_NOTIFICATION,
    JSONRPCId,
    JSONRPCRequest,
    JSONRPCResponse,
)
from .schema import (
    AgentCard,
    StreamEvent,
    Task,
    TaskIdParams,
    TaskPushNotificationConfig,
    TaskQueryParams,
    TaskSendParams,
)

__all__ = ('A2AServer', 'Payload')

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

Payload: TypeAlias = Union[bytes, str, Mapping[str, Any]]
"""A raw JSON-RPC request: undecoded JSON, or JSON already decoded into a mapping."""


@dataclass(frozen=True)
class _Route:
    params_type: type[WireModel]
    handler: str
    streaming: bool = False


_ROUTES: dict[str, _Route] = {
    SEND_TASK: _Route(TaskSendParams, 'on_send_task'),
    GET_TASK: _Route(TaskQueryParams, 'on_get_task'),
    CANCEL_TASK: _Route(TaskIdParams, 'on_cancel_task'),
    SET_PUSH_NOTIFICATION: _Route(TaskPushNotificationConfig, 'on_set_push_notification'),
    GET_PUSH_NOTIFICATION: _Route(TaskIdParams, 'on_get_push_notification'),
    SEND_TASK_SUBSCRIBE: _Route(TaskSendParams, 'on_send_task_subscribe', streaming=True),
    RESUBSCRIBE: _Route(TaskQueryParams, 'on_resubscribe', streaming=True),
}


def _error_details(exc: ValidationError) -> list[Any]:
    return exc.errors(include_url=False, include_context=False, include_input=False)


def _detect_id(data: Any) -> JSONRPCId | None:
    """The id of decoded JSON, read before the envelope is validated so error responses can echo it."""
    request_id = data.get('id') if isinstance(data, Mapping) else None
    if isinstance(request_id, (str, int)) and not isinstance(request_id, bool):
        return request_id
    return None


class A2AServer(ABC):
    """The base class for A2A agents, implementing JSON-RPC dispatch over abstract task handlers.

    Subclasses implement one `on_*` coroutine per A2A method. The server itself holds no task state,
    storing and updating tasks is up to the subclass.
    """

    def __init__(self, agent_card: AgentCard):
        self._agent_card = agent_card

    @property
    def agent_card(self) -> AgentCard:
        """The card describing this agent, as served for discovery."""
        return self._agent_card

    async def handle_request(self, payload: Payload) -> JSONRPCResponse:
        """Handle a request for one of the non-streaming methods."""
        request_id: JSONRPCId | None = None
        try:
            data = self.decode_payload(payload)
            request_id = _detect_id(data)
            request = self.validate_request(data)
            route = self._route(request)
            if route.streaming:
                raise InvalidRequestError(data={'method': request.method, 'detail': 'streaming method'})
            params = self._parse_params(route, request)
            with tracer.start_as_current_span(f'a2a {request.method}'):
                result = await getattr(self, route.handler)(params)
            return JSONRPCResponse.of_result(request_id, result)
        except Exception as e:
            return self._error_response(request_id, e)

    async def handle_stream(self, payload: Payload) -> AsyncIterator[JSONRPCResponse]:
        """Handle a request for `tasks/sendSubscribe` or `tasks/resubscribe`.

        Yields one response per event. If anything fails, a single error response is yielded last.
        """
        request_id: JSONRPCId | None = None
        try:
            data = self.decode_payload(payload)
            request_id = _detect_id(data)
            request = self.validate_request(data)
            route = self._route(request)
            if not route.streaming:
                raise InvalidRequestError(data={'method': request.method, 'detail': 'not a streaming method'})
            if not self.agent_card.capabilities.streaming:
                raise UnsupportedOperationError(data={'method': request.method})
            params = self._parse_params(route, request)
        except Exception as e:
            yield self._error_response(request_id, e)
            return

        span = tracer.start_span(f'a2a {request.method}')
        try:
            async for event in getattr(self, route.handler)(params):
                yield JSONRPCResponse.of_result(request_id, event)
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR))
            yield self._error_response(request_id, e)
        finally:
            span.end()

    @staticmethod
    def decode_payload(payload: Payload) -> Any:
        """Decode `payload` if it is undecoded JSON, anything else is returned as is."""
        if not isinstance(payload, (bytes, str)):
            return payload
        try:
            return pydantic_core.from_json(payload)
        except ValueError as e:
            raise JSONParseError(data={'detail': str(e)}) from e

    @staticmethod
    def validate_request(data: Any) -> JSONRPCRequest:
        """Validate decoded JSON as a JSON-RPC request envelope."""
        try:
            return JSONRPCRequest.from_wire(data)
        except ValidationError as e:
            raise InvalidRequestError(data=_error_details(e)) from e

    @classmethod
    def parse_request(cls, payload: Payload) -> JSONRPCRequest:
        """Decode and validate a JSON-RPC request envelope."""
        return cls.validate_request(cls.decode_payload(payload))

    def ensure_cancelable(self, task: Task) -> None:
        """Raise `TaskNotCancelableError` if `task` already reached a terminal state."""
        if task.state.is_terminal:
            raise TaskNotCancelableError(data={'id': task.id, 'state': task.state.value})

    def ensure_push_notifications(self) -> None:
        """Raise `PushNotificationNotSupportedError` unless the agent card advertises push notifications."""
        if not self.agent_card.capabilities.push_notifications:
            raise PushNotificationNotSupportedError()

    @abstractmethod
    async def on_send_task(self, params: TaskSendParams) -> Task:
        """Handle `tasks/send`: create or continue a task with a new message."""

    @abstractmethod
    async def on_get_task(self, params: TaskQueryParams) -> Task:
        """Handle `tasks/get`. Raise `TaskNotFoundError` for an unknown id."""

    @abstractmethod
    async def on_cancel_task(self, params: TaskIdParams) -> Task:
        """Handle `tasks/cancel`, usually after calling `ensure_cancelable`."""

    @abstractmethod
    async def on_set_push_notification(self, params: TaskPushNotificationConfig) -> TaskPushNotificationConfig:
        """Handle `tasks/pushNotification/set`, usually after calling `ensure_push_notifications`."""

    @abstractmethod
    async def on_get_push_notification(self, params: TaskIdParams) -> TaskPushNotificationConfig:
        """Handle `tasks/pushNotification/get`."""

    @abstractmethod
    def on_send_task_subscribe(self, params: TaskSendParams) -> AsyncIterator[StreamEvent]:
        """Handle `tasks/sendSubscribe`, yielding status and artifact updates as they happen."""

    @abstractmethod
    def on_resubscribe(self, params: TaskQueryParams) -> AsyncIterator[StreamEvent]:
        """Handle `tasks/resubscribe`, yielding the updates of a task that is already running."""

    def _route(self, request: JSONRPCRequest) -> _Route:
        route = _ROUTES.get(request.method)
        if route is None:
            raise MethodNotFoundError(data={'method': request.method})
        return route

    def _parse_params(self, route: _Route, request: JSONRPCRequest) -> WireModel:
        try:
            return route.params_type.from_wire(request.params if request.params is not None else {})
        except ValidationError as e:
            raise InvalidParamsError(data=_error_details(e)) from e

    def _error_response(self, request_id: JSONRPCId | None, exc: Exception) -> JSONRPCResponse:
        if isinstance(exc, A2AError):
            logger.info('A2A request %r failed: %r', request_id, exc)
        else:
            logger.exception('Unexpected error handling A2A request %r', request_id)
        return JSONRPCResponse.from_exception(request_id, exc)
