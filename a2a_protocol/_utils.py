from __future__ import annotations as _annotations

import copy
from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, SerializerFunctionWrapHandler, ValidationInfo, model_serializer
from pydantic.alias_generators import to_camel
from typing_extensions import Self, TypeAlias

WIRE_CONTEXT = 'a2a_wire'
"""Validation context key set by `from_wire` and `from_json`, for checks that only apply to decoded input."""


def now_utc() -> datetime:
    return datetime.now(tz=timezone.utc)


def from_wire_context(info: ValidationInfo) -> bool:
    """Whether the current validation was started by `from_wire` or `from_json`."""
    return bool(info.context and info.context.get(WIRE_CONTEXT))


JsonValue: TypeAlias = Annotated[Any, BeforeValidator(copy.deepcopy)]
"""Arbitrary JSON, copied on the way in so a model never shares it with the caller."""

JsonObject: TypeAlias = Annotated[dict[str, Any], BeforeValidator(copy.deepcopy)]


class WireModel(BaseModel, alias_generator=to_camel, populate_by_name=True, frozen=True):
    """Base class for every value object that travels over the wire.

    Fields are snake_case in Python and camelCase on the wire; both spellings are accepted
    when validating. Optional fields that are `None` are left out of the serialized output
    entirely, they are never emitted as `null`.
    """

    @model_serializer(mode='wrap')
    def _omit_absent(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        for name, field in type(self).model_fields.items():
            if field.is_required() or getattr(self, name) is not None:
                continue
            data.pop(name, None)
            if field.alias:
                data.pop(field.alias, None)
        return data

    def to_wire(self) -> dict[str, Any]:
        """Dump to a JSON compatible dict with camelCase keys."""
        return self.model_dump(mode='json', by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_wire(cls, data: Any) -> Self:
        """Validate a JSON compatible mapping, as produced by `to_wire`."""
        return cls.model_validate(data, context={WIRE_CONTEXT: True})

    @classmethod
    def from_json(cls, data: str | bytes) -> Self:
        return cls.model_validate_json(data, context={WIRE_CONTEXT: True})
