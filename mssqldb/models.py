"""Row types returned by the SQL Server client's catalog listings."""

import enum
from dataclasses import dataclass
from typing import Any, Mapping, Optional


def _sid(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex().upper()
    return str(value)


@dataclass(frozen=True)
class ServerModel:
    name: str


@dataclass(frozen=True)
class DatabaseModel:
    id: int
    name: str
    state_desc: str = "ONLINE"

    @property
    def is_online(self) -> bool:
        return self.state_desc == "ONLINE"

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "DatabaseModel":
        return cls(id=int(row['database_id']), name=row['name'], state_desc=row.get('state_desc') or "ONLINE")


@dataclass(frozen=True)
class SchemaModel:
    id: int
    owner_id: int
    name: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SchemaModel":
        return cls(id=int(row['schema_id']), owner_id=int(row['principal_id']), name=row['name'])


@dataclass(frozen=True)
class TableModel:
    id: int
    schema_id: int
    name: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TableModel":
        return cls(id=int(row['object_id']), schema_id=int(row['schema_id']), name=row['name'])


@dataclass(frozen=True)
class EndpointModel:
    id: int
    name: str
    protocol_desc: str
    type_desc: str
    state_desc: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "EndpointModel":
        return cls(
            id=int(row['endpoint_id']),
            name=row['name'],
            protocol_desc=row['protocol_desc'],
            type_desc=row['type_desc'],
            state_desc=row['state_desc']
        )


@dataclass(frozen=True)
class PrincipalModel:
    """A server login, server group or role row."""
    id: int
    name: str
    type_desc: str
    type: str = ""
    security_id: Optional[str] = None
    is_disabled: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PrincipalModel":
        return cls(
            id=int(row['principal_id']),
            name=row['name'],
            type_desc=row.get('type_desc') or "",
            type=(row.get('type') or "").strip(),
            security_id=_sid(row.get('sid')),
            is_disabled=bool(row.get('is_disabled') or False)
        )


class LoginType(enum.Enum):
    """Authentication types a new login can be created with."""
    WINDOWS = "WINDOWS"
    SQL = "SQL"
    AZURE_AD = "AZURE_AD"
    ENTRA_ID = "ENTRA_ID"

    @classmethod
    def parse(cls, value: str) -> "LoginType":
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ValueError(f"unsupported login type: {value!r}") from None
