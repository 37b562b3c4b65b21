"""Exceptions for A2A protocol errors.

Each exception corresponds to one reserved JSON-RPC error code, so a server can turn whatever it catches
into an error response with [`JSONRPCError.from_exception`][a2a_protocol.protocol.JSONRPCError.from_exception]
and a client can turn an error response back into an exception with
[`JSONRPCError.to_exception`][a2a_protocol.protocol.JSONRPCError.to_exception].

Exception hierarchy:
- [`A2AError`][a2a_protocol.exceptions.A2AError]: Base exception for all protocol errors
    - [`JSONParseError`][a2a_protocol.exceptions.JSONParseError]: -32700, the payload is not valid JSON
    - [`InvalidRequestError`][a2a_protocol.exceptions.InvalidRequestError]: -32600, not a JSON-RPC request
    - [`MethodNotFoundError`][a2a_protocol.exceptions.MethodNotFoundError]: -32601, unknown method
    - [`InvalidParamsError`][a2a_protocol.exceptions.InvalidParamsError]: -32602, params fail validation
    - [`InternalError`][a2a_protocol.exceptions.InternalError]: -32603, unclassified server failure
    - [`TaskNotFoundError`][a2a_protocol.exceptions.TaskNotFoundError]: -32001, unknown task id
    - [`TaskNotCancelableError`][a2a_protocol.exceptions.TaskNotCancelableError]: -32002, task is terminal
    - [`PushNotificationNotSupportedError`][a2a_protocol.exceptions.PushNotificationNotSupportedError]: -32003
    - [`UnsupportedOperationError`][a2a_protocol.exceptions.UnsupportedOperationError]: -32004
"""

from __future__ import annotations as _annotations

from typing import Any, ClassVar

__all__ = (
    'A2AError',
    'JSONParseError',
    'InvalidRequestError',
    'MethodNotFoundError',
    'InvalidParamsError',
    'InternalError',
    'TaskNotFoundError',
    'TaskNotCancelableError',
    'PushNotificationNotSupportedError',
    'UnsupportedOperationError',
    'error_class_for_code',
)


class A2AError(Exception):
    """Base for all protocol errors, carrying a JSON-RPC error code and optional structured data."""

    code: int
    message: str
    data: Any

    def __init__(self, message: str, *, code: int, data: Any = None):
        self.message = message
        self.code = code
        self.data = data
        super().__init__(message)

    def __repr__(self) -> str:
        return f'{type(self).__name__}(code={self.code}, message={self.message!r}, data={self.data!r})'


class _ReservedError(A2AError):
    default_code: ClassVar[int]
    default_message: ClassVar[str]

    def __init__(self, message: str | None = None, *, data: Any = None):
        super().__init__(message or self.default_message, code=self.default_code, data=data)


class JSONParseError(_ReservedError):
    """The payload could not be parsed as JSON."""

    default_code = -32700
    default_message = 'Invalid JSON payload'


class InvalidRequestError(_ReservedError):
    """The payload is JSON but not a valid JSON-RPC request."""

    default_code = -32600
    default_message = 'Request payload validation error'


class MethodNotFoundError(_ReservedError):
    default_code = -32601
    default_message = 'Method not found'


class InvalidParamsError(_ReservedError):
    default_code = -32602
    default_message = 'Invalid parameters'


class InternalError(_ReservedError):
    default_code = -32603
    default_message = 'Internal error'


class TaskNotFoundError(_ReservedError):
    """The referenced task id is not known to the agent."""

    default_code = -32001
    default_message = 'Task not found'


class TaskNotCancelableError(_ReservedError):
    """Cancellation was requested for a task that is already in a terminal state."""

    default_code = -32002
    default_message = 'Task cannot be canceled'


class PushNotificationNotSupportedError(_ReservedError):
    """The agent card does not advertise the `push_notifications` capability."""

    default_code = -32003
    default_message = 'Push Notification is not supported'


class UnsupportedOperationError(_ReservedError):
    """The method is known but this agent doesn't implement it."""

    default_code = -32004
    default_message = 'This operation is not supported'


_ERRORS_BY_CODE: dict[int, type[_ReservedError]] = {
    cls.default_code: cls
    for cls in (
        JSONParseError,
        InvalidRequestError,
        MethodNotFoundError,
        InvalidParamsError,
        InternalError,
        TaskNotFoundError,
        TaskNotCancelableError,
        PushNotificationNotSupportedError,
        UnsupportedOperationError,
    )
}


def error_class_for_code(code: int) -> type[_ReservedError] | None:
    """Look up the exception class reserved for `code`, if there is one."""
    return _ERRORS_BY_CODE.get(code)
