"""ECU definition files: variants, connection settings and their JSON form."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from typing import Any, TextIO, Union

from ovdiag.diag import ECUDTC, Service

_U32_MAX = 0xFFFF_FFFF


class ServerType(enum.Enum):
    """Diagnostic protocol spoken by the ECU."""

    UDS = "UDS"
    KWP2000 = "KWP2000"


class LinWakeUpType(enum.Enum):
    """How the K-Line bus is woken up."""

    FIVE_BAUD_INIT = "FiveBaudInit"
    FAST_INIT = "FastInit"


def _field(obj: Any, key: str) -> Any:
    if not isinstance(obj, dict):
        raise ValueError(f"expected an object holding {key!r}, got {type(obj).__name__}")
    try:
        return obj[key]
    except KeyError:
        raise ValueError(f"missing field {key!r}") from None


def _u32(obj: Any, key: str) -> int:
    value = _field(obj, key)
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= _U32_MAX:
        raise ValueError(f"{key} must be an unsigned 32-bit integer")
    return value


def _flag(obj: Any, key: str) -> bool:
    value = _field(obj, key)
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean")
    return value


def _str(obj: Any, key: str) -> str:
    value = _field(obj, key)
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _list(obj: Any, key: str, required: bool = True) -> list:
    if required:
        value = _field(obj, key)
    else:
        if not isinstance(obj, dict):
            raise ValueError(f"expected an object holding {key!r}")
        value = obj.get(key, [])
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list")
    return value


@dataclass
class LinConnection:
    """K-Line connection settings."""

    max_segment_size: int
    wake_up_method: LinWakeUpType

    def to_json(self) -> dict:
        return {
            "LIN": {
                "max_segment_size": self.max_segment_size,
                "wake_up_method": self.wake_up_method.value,
            }
        }


@dataclass
class IsoTpConnection:
    """ISO-TP over CAN connection settings."""

    blocksize: int
    st_min: int
    ext_can_addr: bool
    ext_isotp_addr: bool

    def to_json(self) -> dict:
        return {
            "ISOTP": {
                "blocksize": self.blocksize,
                "st_min": self.st_min,
                "ext_can_addr": self.ext_can_addr,
                "ext_isotp_addr": self.ext_isotp_addr,
            }
        }


ConnectionType = Union[LinConnection, IsoTpConnection]


def _connection_type_from_json(obj: Any) -> ConnectionType:
    if not isinstance(obj, dict) or len(obj) != 1:
        raise ValueError("a connection type is an object with a single key")
    ((name, content),) = obj.items()
    match name:
        case "LIN":
            return LinConnection(
                max_segment_size=_u32(content, "max_segment_size"),
                wake_up_method=LinWakeUpType(_field(content, "wake_up_method")),
            )
        case "ISOTP":
            return IsoTpConnection(
                blocksize=_u32(content, "blocksize"),
                st_min=_u32(content, "st_min"),
                ext_can_addr=_flag(content, "ext_can_addr"),
                ext_isotp_addr=_flag(content, "ext_isotp_addr"),
            )
        case _:
            raise ValueError(f"unknown connection type {name!r}")


@dataclass
class Connection:
    """How to reach an ECU: bus settings, addressing and protocol."""

    baud: int
    send_id: int
    connection_type: ConnectionType
    server_type: ServerType
    recv_id: int
    global_send_id: int | None = None

    def to_json(self) -> dict:
        out: dict = {"baud": self.baud, "send_id": self.send_id}
        if self.global_send_id is not None:
            out["global_send_id"] = self.global_send_id
        out["connection_type"] = self.connection_type.to_json()
        out["server_type"] = self.server_type.value
        out["recv_id"] = self.recv_id
        return out

    @classmethod
    def from_json(cls, obj: Any) -> "Connection":
        global_id = obj.get("global_send_id") if isinstance(obj, dict) else None
        return cls(
            baud=_u32(obj, "baud"),
            send_id=_u32(obj, "send_id"),
            connection_type=_connection_type_from_json(_field(obj, "connection_type")),
            server_type=ServerType(_field(obj, "server_type")),
            recv_id=_u32(obj, "recv_id"),
            global_send_id=_u32(obj, "global_send_id") if global_id is not None else None,
        )


@dataclass
class ECUVariantPattern:
    """Hardware vendor and vendor ID identifying one ECU variant."""

    vendor: str
    vendor_id: int

    def to_json(self) -> dict:
        return {"vendor": self.vendor, "vendor_id": self.vendor_id}

    @classmethod
    def from_json(cls, obj: Any) -> "ECUVariantPattern":
        return cls(vendor=_str(obj, "vendor"), vendor_id=_u32(obj, "vendor_id"))


@dataclass
class ECUVariantDefinition:
    """One software variant of an ECU with its trouble codes and services."""

    name: str
    description: str
    patterns: list[ECUVariantPattern]
    errors: list[ECUDTC]
    adjustments: list[Service] = field(default_factory=list)
    actuations: list[Service] = field(default_factory=list)
    functions: list[Service] = field(default_factory=list)
    downloads: list[Service] = field(default_factory=list)

    def to_json(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "patterns": [p.to_json() for p in self.patterns],
            "errors": [e.to_json() for e in self.errors],
            "adjustments": [s.to_json() for s in self.adjustments],
            "actuations": [s.to_json() for s in self.actuations],
            "functions": [s.to_json() for s in self.functions],
            "downloads": [s.to_json() for s in self.downloads],
        }

    @classmethod
    def from_json(cls, obj: Any) -> "ECUVariantDefinition":
        def services(key: str) -> list[Service]:
            return [Service.from_json(s) for s in _list(obj, key, required=False)]

        return cls(
            name=_str(obj, "name"),
            description=_str(obj, "description"),
            patterns=[ECUVariantPattern.from_json(p) for p in _list(obj, "patterns")],
            errors=[ECUDTC.from_json(e) for e in _list(obj, "errors")],
            adjustments=services("adjustments"),
            actuations=services("actuations"),
            functions=services("functions"),
            downloads=services("downloads"),
        )


@dataclass
class OvdECU:
    """An ECU with its variants and the connections it can be reached over."""

    name: str
    description: str
    variants: list[ECUVariantDefinition]
    connections: list[Connection]

    def to_json(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "variants": [v.to_json() for v in self.variants],
            "connections": [c.to_json() for c in self.connections],
        }

    @classmethod
    def from_json(cls, obj: Any) -> "OvdECU":
        return cls(
            name=_str(obj, "name"),
            description=_str(obj, "description"),
            variants=[ECUVariantDefinition.from_json(v) for v in _list(obj, "variants")],
            connections=[Connection.from_json(c) for c in _list(obj, "connections")],
        )


def loads_ecu(text: str) -> OvdECU:
    """Parse an ECU definition from JSON text."""
    return OvdECU.from_json(json.loads(text))


def dumps_ecu(ecu: OvdECU) -> str:
    """Serialise an ECU definition to JSON text."""
    return json.dumps(ecu.to_json(), indent=2)


def load_ecu(fp: TextIO) -> OvdECU:
    """Read an ECU definition from an open text file."""
    return OvdECU.from_json(json.load(fp))