from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from leunique.time_utils import parse_iso_datetime, to_utc_z


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass(frozen=True)
class Column:
    """
    Wire-level column metadata used by the validation layer.

    kind is one of int, str, bool or an Enum subclass.
    """
    attr: str
    kind: type
    nullable: bool = False
    max_length: int | None = None


@dataclass
class Entity:
    """
    Base for every stored record.

    Attributes are snake_case in Python; the JSON wire format and the snapshot
    file use camelCase keys. from_snapshot() tolerates missing keys (dataclass
    defaults apply) and ignores unknown ones, since the snapshot carries no
    schema version.
    """
    COLUMNS: ClassVar[dict[str, Column]] = {}
    DATETIME_FIELDS: ClassVar[tuple[str, ...]] = ("created_at",)
    ENUM_FIELDS: ClassVar[dict[str, type[Enum]]] = {}
    PRIVATE_FIELDS: ClassVar[tuple[str, ...]] = ()

    def _serialize(self, *, keep_microseconds: bool, include_private: bool) -> dict:
        out = {}
        for f in dataclasses.fields(self):
            if not include_private and f.name in self.PRIVATE_FIELDS:
                continue
            value = getattr(self, f.name)
            if f.name in self.DATETIME_FIELDS:
                value = to_utc_z(value, keep_microseconds=keep_microseconds)
            elif isinstance(value, Enum):
                value = value.value
            out[camel_case(f.name)] = value
        return out

    def to_dict(self) -> dict:
        return self._serialize(keep_microseconds=False, include_private=False)

    def to_snapshot(self) -> dict:
        return self._serialize(keep_microseconds=True, include_private=True)

    @classmethod
    def from_snapshot(cls, data: dict[str, Any]):
        kwargs = {}
        for f in dataclasses.fields(cls):
            key = camel_case(f.name)
            if key not in data:
                continue
            value = data[key]
            if f.name in cls.DATETIME_FIELDS and isinstance(value, str):
                value = parse_iso_datetime(value)
            elif f.name in cls.ENUM_FIELDS and value is not None:
                value = cls.ENUM_FIELDS[f.name](value)
            kwargs[f.name] = value
        return cls(**kwargs)

    def copy(self):
        return dataclasses.replace(self)
