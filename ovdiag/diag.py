"""Diagnostic service, parameter and trouble-code definitions with value decoding."""

from __future__ import annotations

import binascii
import enum
import math
import struct
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any


class StringEncoding(enum.Enum):
    ASCII = "ASCII"
    UTF8 = "Utf8"
    UTF16 = "Utf16"


class FormatKind(enum.Enum):
    """How a coded value is interpreted."""

    BINARY = "Binary"
    HEX_DUMP = "HexDump"
    STRING = "String"
    BOOL = "Bool"
    TABLE = "Table"
    IDENTICAL = "Identical"
    LINEAR = "Linear"
    SCALE_LINEAR = "ScaleLinear"
    RAT_FUNC = "RatFunc"
    SCALE_RAT_FUNC = "ScaleRatFunc"
    TABLE_INTERPRETATION = "TableInterpretation"
    COMPU_CODE = "CompuCode"


_PLAIN_KINDS = frozenset(
    {
        FormatKind.BINARY,
        FormatKind.HEX_DUMP,
        FormatKind.IDENTICAL,
        FormatKind.SCALE_LINEAR,
        FormatKind.RAT_FUNC,
        FormatKind.SCALE_RAT_FUNC,
        FormatKind.TABLE_INTERPRETATION,
    }
)
_UNIMPLEMENTED_KINDS = frozenset(
    {
        FormatKind.SCALE_LINEAR,
        FormatKind.RAT_FUNC,
        FormatKind.SCALE_RAT_FUNC,
        FormatKind.TABLE_INTERPRETATION,
        FormatKind.COMPU_CODE,
    }
)
_PLOTTABLE_KINDS = frozenset({FormatKind.BOOL, FormatKind.IDENTICAL, FormatKind.LINEAR})


class ParamByteOrder(enum.Enum):
    BIG_ENDIAN = "BigEndian"
    LITTLE_ENDIAN = "LittleEndian"


class ParamDecodeError(Exception):
    """A parameter value could not be decoded."""


class DecodeNotImplementedError(ParamDecodeError):
    """The data format has no decoder yet."""


class BitRangeError(ParamDecodeError):
    """The parameter's bit range does not fit the data or the decoder."""


class DecodeNotSupportedError(ParamDecodeError):
    """The data format cannot be decoded to this kind of value."""


def _field(obj: Any, key: str) -> Any:
    if not isinstance(obj, dict):
        raise ValueError(f"expected an object holding {key!r}, got {type(obj).__name__}")
    try:
        return obj[key]
    except KeyError:
        raise ValueError(f"missing field {key!r}") from None


def _f32(value: float) -> float:
    """Round a float to single precision."""
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _format_f32(value: float) -> str:
    """Shortest decimal text that reads back as the same single-precision value."""
    number = _f32(value)
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "inf" if number > 0 else "-inf"
    for precision in range(10):
        text = f"{number:.{precision}e}"
        if _f32(float(text)) == number:
            break
    plain = format(Decimal(text), "f")
    if "." in plain:
        plain = plain.rstrip("0").rstrip(".")
    return plain


def _get_bits(data: bytes, start: int, end: int) -> int:
    """Bits ``start..end`` of ``data``, numbered from the least significant bit of byte 0."""
    if start >= end or end - start > 8 or end > len(data) * 8:
        raise BitRangeError(f"bit range {start}..{end} is invalid for {len(data)} bytes")
    return (int.from_bytes(data, "little") >> start) & ((1 << (end - start)) - 1)


@dataclass
class TableData:
    name: str
    start: float
    end: float


def _table_to_json(entry: TableData) -> dict:
    return {"name": entry.name, "start": entry.start, "end": entry.end}


def _table_from_json(obj: Any) -> TableData:
    return TableData(
        name=str(_field(obj, "name")),
        start=float(_field(obj, "start")),
        end=float(_field(obj, "end")),
    )


@dataclass
class DataFormat:
    """A data format; only the fields relevant to ``kind`` are used."""

    kind: FormatKind
    encoding: StringEncoding = StringEncoding.UTF8
    pos_name: str | None = None
    neg_name: str | None = None
    table: list[TableData] = field(default_factory=list)
    multiplier: float = 1.0
    offset: float = 0.0
    code: bytes = b""

    def to_json(self) -> Any:
        match self.kind:
            case FormatKind.STRING:
                return {"String": self.encoding.value}
            case FormatKind.BOOL:
                return {"Bool": {"pos_name": self.pos_name, "neg_name": self.neg_name}}
            case FormatKind.TABLE:
                return {"Table": [_table_to_json(t) for t in self.table]}
            case FormatKind.LINEAR:
                return {"Linear": {"multiplier": self.multiplier, "offset": self.offset}}
            case FormatKind.COMPU_CODE:
                return {"CompuCode": list(self.code)}
            case _:
                return self.kind.value

    @classmethod
    def from_json(cls, obj: Any) -> "DataFormat":
        if isinstance(obj, str):
            kind = FormatKind(obj)
            if kind not in _PLAIN_KINDS:
                raise ValueError(f"data format {obj!r} requires content")
            return cls(kind)
        if not isinstance(obj, dict) or len(obj) != 1:
            raise ValueError("a data format is a name or an object with a single key")
        ((name, content),) = obj.items()
        kind = FormatKind(name)
        match kind:
            case FormatKind.STRING:
                return cls(kind, encoding=StringEncoding(content))
            case FormatKind.BOOL:
                if not isinstance(content, dict):
                    raise ValueError("Bool format content must be an object")
                return cls(kind, pos_name=content.get("pos_name"), neg_name=content.get("neg_name"))
            case FormatKind.TABLE:
                if not isinstance(content, list):
                    raise ValueError("Table format content must be a list")
                return cls(kind, table=[_table_from_json(t) for t in content])
            case FormatKind.LINEAR:
                return cls(
                    kind,
                    multiplier=float(_field(content, "multiplier")),
                    offset=float(_field(content, "offset")),
                )
            case FormatKind.COMPU_CODE:
                if not isinstance(content, list):
                    raise ValueError("CompuCode format content must be a list of bytes")
                return cls(kind, code=bytes(content))
            case _:
                if content is not None:
                    raise ValueError(f"data format {name!r} takes no content")
                return cls(kind)


@dataclass
class Limit:
    upper: float
    lower: float

    def to_json(self) -> dict:
        return {"upper": self.upper, "lower": self.lower}

    @classmethod
    def from_json(cls, obj: Any) -> "Limit":
        return cls(upper=float(_field(obj, "upper")), lower=float(_field(obj, "lower")))


@dataclass
class Parameter:
    """A value located by bit position inside a diagnostic response."""

    name: str
    unit: str
    start_bit: int
    length_bits: int
    byte_order: ParamByteOrder
    data_format: DataFormat
    valid_bounds: Limit | None = None

    def _byte_span(self) -> tuple[int, int]:
        return self.start_bit // 8, (self.start_bit + self.length_bits) // 8

    def _number(self, data: bytes) -> int:
        if self.length_bits > 32:
            raise BitRangeError("cannot decode numbers wider than 32 bits")
        start = self.start_bit
        stop = start + self.length_bits
        if self.length_bits <= 8:
            return _get_bits(data, start, stop)
        chunk = bytes(_get_bits(data, s, min(stop, s + 8)) for s in range(start, stop, 8))
        if len(chunk) == 3:
            raise BitRangeError("a 3-byte number cannot be decoded")
        order = "big" if self.byte_order is ParamByteOrder.BIG_ENDIAN else "little"
        return int.from_bytes(chunk, order)

    def _linear(self, data: bytes) -> float:
        raw = _f32(float(self._number(data)))
        fmt = self.data_format
        return _f32(_f32(raw * _f32(fmt.multiplier)) + _f32(fmt.offset))

    def _decode_string(self, data: bytes) -> str:
        start, end = self._byte_span()
        if self.data_format.encoding is StringEncoding.UTF16:
            if (end - start) % 2:
                end += 1
            if end > len(data):
                raise BitRangeError("string runs past the end of the data")
            codec = "utf-16-be" if self.byte_order is ParamByteOrder.BIG_ENDIAN else "utf-16-le"
            return data[start:end].decode(codec, errors="replace")
        if end > len(data):
            raise BitRangeError("string runs past the end of the data")
        return data[start:end].decode("utf-8", errors="replace")

    def _decode_binary(self, data: bytes) -> str:
        start, end = self._byte_span()
        if start == end:
            if start >= len(data):
                raise BitRangeError("binary value lies past the end of the data")
            return f"b{data[start]:08b}"
        values = data[start : min(end, len(data))]
        if not values:
            raise BitRangeError("binary value lies past the end of the data")
        return "[" + ", ".join(f"b{b:08b}" for b in values) + "]"

    def _decode_hex(self, data: bytes) -> str:
        start, end = self._byte_span()
        stop = min(end, len(data))
        if start > stop:
            raise BitRangeError("hex dump starts past the end of the data")
        return "[" + ", ".join(f"{b:02X}" for b in data[start:stop]) + "]"

    def decode_value_to_string(self, data: bytes) -> str:
        """Decode the parameter from ``data`` to display text."""
        fmt = self.data_format
        match fmt.kind:
            case FormatKind.HEX_DUMP:
                return self._decode_hex(data)
            case FormatKind.STRING:
                return self._decode_string(data)
            case FormatKind.BOOL:
                if self._number(data) == 0:
                    return fmt.neg_name if fmt.neg_name is not None else "False"
                return fmt.pos_name if fmt.pos_name is not None else "True"
            case FormatKind.BINARY:
                return self._decode_binary(data)
            case FormatKind.TABLE:
                raw = _f32(float(self._number(data)))
                for entry in fmt.table:
                    if _f32(entry.start) >= raw and _f32(entry.end) <= raw:
                        return entry.name
                return f"Undefined ({_format_f32(raw)})"
            case FormatKind.IDENTICAL:
                text = _format_f32(float(self._number(data)))
            case FormatKind.LINEAR:
                text = _format_f32(self._linear(data))
            case _:
                raise DecodeNotImplementedError(f"{fmt.kind.value} decoding is not implemented")
        unit = self.display_unit()
        return f"{text} {unit}" if unit is not None else text

    def decode_value_to_number(self, data: bytes) -> float:
        """Decode the parameter from ``data`` to a number."""
        kind = self.data_format.kind
        if kind in _UNIMPLEMENTED_KINDS:
            raise DecodeNotImplementedError(f"{kind.value} decoding is not implemented")
        match kind:
            case FormatKind.BOOL:
                return 1.0 if self._number(data) > 0 else 0.0
            case FormatKind.IDENTICAL:
                return _f32(float(self._number(data)))
            case FormatKind.LINEAR:
                return self._linear(data)
            case _:
                raise DecodeNotSupportedError(f"{kind.value} cannot be decoded to a number")

    def can_plot(self) -> bool:
        """Whether the decoded value can be drawn on a chart."""
        return self.data_format.kind in _PLOTTABLE_KINDS

    def display_unit(self) -> str | None:
        return self.unit or None

    def to_json(self) -> dict:
        out = {
            "name": self.name,
            "unit": self.unit,
            "start_bit": self.start_bit,
            "length_bits": self.length_bits,
            "byte_order": self.byte_order.value,
            "data_format": self.data_format.to_json(),
        }
        if self.valid_bounds is not None:
            out["valid_bounds"] = self.valid_bounds.to_json()
        return out

    @classmethod
    def from_json(cls, obj: Any) -> "Parameter":
        start_bit = _field(obj, "start_bit")
        length_bits = _field(obj, "length_bits")
        for label, value in (("start_bit", start_bit), ("length_bits", length_bits)):
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValueError(f"{label} must be a non-negative integer")
        bounds = obj.get("valid_bounds")
        return cls(
            name=str(_field(obj, "name")),
            unit=str(_field(obj, "unit")),
            start_bit=start_bit,
            length_bits=length_bits,
            byte_order=ParamByteOrder(_field(obj, "byte_order")),
            data_format=DataFormat.from_json(_field(obj, "data_format")),
            valid_bounds=Limit.from_json(bounds) if bounds is not None else None,
        )


def _params_from_json(obj: Any, key: str) -> list[Parameter]:
    items = obj.get(key, [])
    if not isinstance(items, list):
        raise ValueError(f"{key} must be a list")
    return [Parameter.from_json(p) for p in items]


@dataclass
class Service:
    """A diagnostic request with its input and output parameters."""

    name: str
    description: str
    payload: bytes
    input_params: list[Parameter] = field(default_factory=list)
    output_params: list[Parameter] = field(default_factory=list)

    def has_input(self) -> bool:
        return bool(self.input_params)

    def has_output(self) -> bool:
        return bool(self.output_params)

    def to_json(self) -> dict:
        out: dict = {
            "name": self.name,
            "description": self.description,
            "payload": self.payload.hex().upper(),
        }
        if self.input_params:
            out["input_params"] = [p.to_json() for p in self.input_params]
        if self.output_params:
            out["output_params"] = [p.to_json() for p in self.output_params]
        return out

    @classmethod
    def from_json(cls, obj: Any) -> "Service":
        payload = _field(obj, "payload")
        if not isinstance(payload, str):
            raise ValueError("payload must be a hex string")
        try:
            raw = binascii.unhexlify(payload)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"invalid hex payload {payload!r}") from exc
        return cls(
            name=str(_field(obj, "name")),
            description=str(_field(obj, "description")),
            payload=raw,
            input_params=_params_from_json(obj, "input_params"),
            output_params=_params_from_json(obj, "output_params"),
        )


@dataclass
class ECUDTC:
    """A diagnostic trouble code with optional freeze-frame parameters."""

    error_name: str
    summary: str
    description: str
    envs: list[Parameter] = field(default_factory=list)

    def to_json(self) -> dict:
        out: dict = {
            "error_name": self.error_name,
            "summary": self.summary,
            "description": self.description,
        }
        if self.envs:
            out["envs"] = [p.to_json() for p in self.envs]
        return out

    @classmethod
    def from_json(cls, obj: Any) -> "ECUDTC":
        return cls(
            error_name=str(_field(obj, "error_name")),
            summary=str(_field(obj, "summary")),
            description=str(_field(obj, "description")),
            envs=_params_from_json(obj, "envs"),
        )