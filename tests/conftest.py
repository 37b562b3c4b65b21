from __future__ import annotations as _annotations

from collections.abc import AsyncIterator

import pytest

from a2a_protocol.exceptions import TaskNotFoundError, UnsupportedOperationError
from a2a_protocol.schema import (
    AgentCapabilities,
    AgentCard,
    AgentSkill,
    Artifact,
    Message,
    StreamEvent,
    Task,
    TaskArtifactUpdateEvent,
    TaskIdParams,
    TaskPushNotificationConfig,
    TaskQueryParams,
    TaskSendParams,
    TaskStatus,
    TaskStatusUpdateEvent,
    TextPart,
)
from a2a_protocol.server import A2AServer


@pytest.fixture
def anyio_backend():
    return 'asyncio'


class EchoAgent(A2AServer):
    """An agent that answers every message with its own text, keeping tasks in memory."""

    def __init__(self, agent_card: AgentCard):
        super().__init__(agent_card)
        self.tasks: dict[str, Task] = {}
        self.push_configs: dict[str, TaskPushNotificationConfig] = {}

    def load_task(self, task_id: str) -> Task:
        try:
            return self.tasks[task_id]
        except KeyError:
            raise TaskNotFoundError(data={'id': task_id}) from None

    async def on_send_task(self, params: TaskSendParams) -> Task:
        if params.message.text == 'boom':
            raise RuntimeError('the agent exploded')
        task = self.tasks.get(params.id)
        if task is None:
            task = Task(
                id=params.id,
                session_id=params.session_id,
                status=TaskStatus(state='submitted', message=params.message),
                metadata=params.metadata,
            )
        reply = Message.of_text('agent', f'echo: {params.message.text}')
        task = task.with_state('working').with_artifacts(Artifact(name='echo', parts=reply.parts))
        task = task.with_state('completed', reply)
        self.tasks[task.id] = task
        return task

    async def on_get_task(self, params: TaskQueryParams) -> Task:
        return self.load_task(params.id)

    async def on_cancel_task(self, params: TaskIdParams) -> Task:
        task = self.load_task(params.id)
        self.ensure_cancelable(task)
        task = task.with_state('canceled')
        self.tasks[task.id] = task
        return task

    async def on_set_push_notification(self, params: TaskPushNotificationConfig) -> TaskPushNotificationConfig:
        self.ensure_push_notifications()
        self.load_task(params.id)
        self.push_configs[params.id] = params
        return params

    async def on_get_push_notification(self, params: TaskIdParams) -> TaskPushNotificationConfig:
        self.ensure_push_notifications()
        try:
            return self.push_configs[params.id]
        except KeyError:
            raise TaskNotFoundError(data={'id': params.id}) from None

    async def on_send_task_subscribe(self, params: TaskSendParams) -> AsyncIterator[StreamEvent]:
        yield TaskStatusUpdateEvent(id=params.id, status=TaskStatus(state='working'))
        chunks = f'echo: {params.message.text}'.split(' ')
        for index, chunk in enumerate(chunks):
            yield TaskArtifactUpdateEvent(
                id=params.id,
                artifact=Artifact(
                    parts=[TextPart(text=chunk)],
                    index=index,
                    append=index > 0,
                    last_chunk=index == len(chunks) - 1,
                ),
            )
        task = Task(id=params.id, session_id=params.session_id, status=TaskStatus(state='completed'))
        self.tasks[task.id] = task
        yield TaskStatusUpdateEvent(id=params.id, status=task.status, final=True)

    async def on_resubscribe(self, params: TaskQueryParams) -> AsyncIterator[StreamEvent]:
        raise UnsupportedOperationError(data={'id': params.id})
        yield  # pragma: no cover


def make_card(*, streaming: bool = True, push_notifications: bool = False) -> AgentCard:
    return AgentCard(
        name='Echo Agent',
        url='https://echo.example.com/a2a',
        version='1.0.0',
        capabilities=AgentCapabilities(streaming=streaming, push_notifications=push_notifications),
        skills=[AgentSkill(id='echo', name='Echo', tags=['test'])],
    )


@pytest.fixture
def agent() -> EchoAgent:
    return EchoAgent(make_card())


@pytest.fixture
def push_agent() -> EchoAgent:
    return EchoAgent(make_card(push_notifications=True))
