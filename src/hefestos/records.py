"""Conversion between rows and caller types"""

import dataclasses
from collections.abc import Mapping
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

T = TypeVar("T", bound="FromRecord")


@runtime_checkable
class FromRecord(Protocol):
    """Protocol for result types that can be built from one fetched row"""

    @classmethod
    def from_record(cls: type[T], record: Mapping[str, Any]) -> T:
        ...


class RecordModel(BaseModel):
    """Pydantic base class implementing FromRecord.

    Example:
        >>> class User(RecordModel):
        ...     id: int
        ...     name: str
        >>> db.table("users").as_objects(User).find(1)
        User(id=1, name='a')
    """

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "RecordModel":
        """Validate a fetched row into a model instance"""
        return cls.model_validate(dict(record))


def to_record(value: Any) -> dict[str, Any]:
    """Flatten a mapping, pydantic model, dataclass or plain object into field -> value"""
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, BaseModel):
        return value.model_dump()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if hasattr(value, "__dict__"):
        return {k: v for k, v in vars(value).items() if not k.startswith("_")}

    raise TypeError(
        f"Cannot convert {type(value).__name__} to a record; "
        "pass a mapping, a dataclass, a pydantic model or an object with attributes"
    )


def check_record_type(cls: Any) -> type:
    """Ensure ``cls`` implements FromRecord before it is used for mapping rows"""
    if not isinstance(cls, type) or not callable(getattr(cls, "from_record", None)):
        raise TypeError(
            f"{cls!r} does not implement FromRecord: add a 'from_record' classmethod "
            "or subclass hefestos.RecordModel"
        )
    return cls
