"""The JSON-RPC 2.0 envelope A2A messages travel in.

The envelope never looks inside `method` or `params`, routing and params validation belong to the server,
see [`A2AServer`][a2a_protocol.server.A2AServer].
"""

from __future__ import annotations as _annotations

from collections.abc import Mapping
from typing import Any, Literal, TypeVar, Union

from pydantic import StrictInt, StrictStr, TypeAdapter, ValidationInfo, field_serializer, model_validator
from typing_extensions import Self, TypeAlias

from ._utils import JsonValue, WireModel, from_wire_context
from .exceptions import A2AError, InternalError, error_class_for_code

__all__ = (
    'JSONRPC_VERSION',
    'JSONRPCId',
    'JSONRPCError',
    'JSONRPCRequest',
    'JSONRPCResponse',
    'SEND_TASK',
    'SEND_TASK_SUBSCRIBE',
    'GET_TASK',
    'CANCEL_TASK',
    'SET_PUSH_NOTIFICATION',
    'GET_PUSH_NOTIFICATION',
    'RESUBSCRIBE',
)

JSONRPC_VERSION = '2.0'

JSONRPCId: TypeAlias = Union[StrictStr, StrictInt]

SEND_TASK = 'tasks/send'
SEND_TASK_SUBSCRIBE = 'tasks/sendSubscribe'
GET_TASK = 'tasks/get'
CANCEL_TASK = 'tasks/cancel'
SET_PUSH_NOTIFICATION = 'tasks/pushNotification/set'
GET_PUSH_NOTIFICATION = 'tasks/pushNotification/get'
RESUBSCRIBE = 'tasks/resubscribe'

T = TypeVar('T')


class JSONRPCError(WireModel):
    """The `error` member of a JSON-RPC response."""

    code: int
    message: str
    data: JsonValue = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> JSONRPCError:
        """Map an exception to an error object.

        Protocol errors keep their own code, message and data; anything else is reported as an internal
        error with the exception's message.
        """
        if isinstance(exc, A2AError):
            return cls(code=exc.code, message=exc.message, data=exc.data)
        return cls(code=InternalError.default_code, message=str(exc))

    def to_exception(self) -> A2AError:
        """The exception this error stands for, e.g. on the client side of a call."""
        error_cls = error_class_for_code(self.code)
        if error_cls is None:
            return A2AError(self.message, code=self.code, data=self.data)
        return error_cls(self.message, data=self.data)


class _Envelope(WireModel):
    jsonrpc: Literal['2.0'] = JSONRPC_VERSION
    """Defaults to `'2.0'` when building in Python, but must be present in decoded input."""
    id: JSONRPCId | None = None

    @model_validator(mode='before')
    @classmethod
    def _require_version(cls, data: Any, info: ValidationInfo) -> Any:
        if from_wire_context(info) and isinstance(data, Mapping) and 'jsonrpc' not in data:
            raise ValueError('The jsonrpc member is required')
        return data


class JSONRPCRequest(_Envelope):
    """A JSON-RPC request, `id` is `None` for notifications."""

    method: str
    params: JsonValue = None


class JSONRPCResponse(_Envelope):
    """A JSON-RPC response, holding either a `result` or an `error`."""

    result: Any = None
    """Any value; models are serialized with their own `to_wire`."""
    error: JSONRPCError | None = None

    @model_validator(mode='after')
    def _check_result_or_error(self) -> Self:
        if self.result is not None and self.error is not None:
            raise ValueError('A response cannot carry both a result and an error')
        return self

    @field_serializer('result')
    def _serialize_result(self, result: Any) -> Any:
        to_wire = getattr(result, 'to_wire', None)
        return to_wire() if callable(to_wire) else result

    @classmethod
    def of_result(cls, id: JSONRPCId | None, result: Any) -> JSONRPCResponse:
        return cls(id=id, result=result)

    @classmethod
    def from_exception(cls, id: JSONRPCId | None, exc: BaseException) -> JSONRPCResponse:
        return cls(id=id, error=JSONRPCError.from_exception(exc))

    @property
    def success(self) -> bool:
        return self.error is None

    def result_as(self, type_: type[T]) -> T:
        """Validate the raw `result` as `type_`, e.g. `response.result_as(Task)`."""
        return TypeAdapter(type_).validate_python(self.result)
