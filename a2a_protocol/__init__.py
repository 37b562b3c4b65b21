from .client import A2AClient
from .exceptions import (
    A2AError,
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    JSONParseError,
    MethodNotFoundError,
    PushNotificationNotSupportedError,
    TaskNotCancelableError,
    TaskNotFoundError,
    UnsupportedOperationError,
)
from .protocol import JSONRPCError, JSONRPCRequest, JSONRPCResponse
from .schema import (
    AgentAuthentication,
    AgentCapabilities,
    AgentCard,
    AgentProvider,
    AgentSkill,
    Artifact,
    DataPart,
    FileContent,
    FilePart,
    Message,
    Part,
    PushNotificationConfig,
    Task,
    TaskState,
    TaskStatus,
    TextPart,
    part_from_wire,
)
from .server import A2AServer

__all__ = (
    'A2AServer',
    'A2AClient',
    'Task',
    'TaskState',
    'TaskStatus',
    'Message',
    'Artifact',
    'Part',
    'TextPart',
    'FilePart',
    'FileContent',
    'DataPart',
    'part_from_wire',
    'AgentCard',
    'AgentCapabilities',
    'AgentSkill',
    'AgentProvider',
    'AgentAuthentication',
    'PushNotificationConfig',
    'JSONRPCRequest',
    'JSONRPCResponse',
    'JSONRPCError',
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
)
