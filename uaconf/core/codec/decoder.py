"""
Bounded decoder for OPC UA binary encoded Variant values.

Input is untrusted: every length prefix is checked against the configured
limits before anything is read or allocated, and every failure surfaces as
a ``DecodeError`` carrying a status code. ``deserialize`` is the entrypoint
used on raw network payloads and never raises.

Layout of a Variant:

    encoding_mask:1 || [array_length:int32] || value(s) || [dims_count:int32 || dims:int32*]

    encoding_mask = type_id (low 6 bits) | 0x80 (array) | 0x40 (array dimensions)

Integers are little-endian. Strings and byte strings are an int32 length
followed by the raw bytes, -1 encoding a null value.
"""
import io
import logging
import struct
import uuid
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, BinaryIO

from uaconf.core.models import defaults

logger = logging.getLogger("core.codec")

ARRAY_FLAG = 0x80
DIMENSIONS_FLAG = 0x40
TYPE_MASK = 0x3F


class StatusCode(IntEnum):
    GOOD = 0x00000000
    BAD_DECODING_ERROR = 0x80070000
    BAD_ENCODING_LIMITS_EXCEEDED = 0x80080000


class VariantType(IntEnum):
    NULL = 0
    BOOLEAN = 1
    SBYTE = 2
    BYTE = 3
    INT16 = 4
    UINT16 = 5
    INT32 = 6
    UINT32 = 7
    INT64 = 8
    UINT64 = 9
    FLOAT = 10
    DOUBLE = 11
    STRING = 12
    DATE_TIME = 13
    GUID = 14
    BYTE_STRING = 15


_FIXED_FORMATS: dict[VariantType, struct.Struct] = {
    VariantType.BOOLEAN: struct.Struct("<B"),
    VariantType.SBYTE: struct.Struct("<b"),
    VariantType.BYTE: struct.Struct("<B"),
    VariantType.INT16: struct.Struct("<h"),
    VariantType.UINT16: struct.Struct("<H"),
    VariantType.INT32: struct.Struct("<i"),
    VariantType.UINT32: struct.Struct("<I"),
    VariantType.INT64: struct.Struct("<q"),
    VariantType.UINT64: struct.Struct("<Q"),
    VariantType.FLOAT: struct.Struct("<f"),
    VariantType.DOUBLE: struct.Struct("<d"),
    # 100ns ticks since 1601-01-01, kept as the raw integer
    VariantType.DATE_TIME: struct.Struct("<q"),
}

_INT32 = struct.Struct("<i")
_GUID_SIZE = 16


@dataclass(frozen=True)
class DecodingOptions:
    """
    Limits applied while decoding. They cap the memory a single message
    may claim, whatever its length prefixes announce.
    """
    max_array_length: int = defaults.DEFAULT_MAX_ARRAY_LENGTH
    max_string_length: int = defaults.DEFAULT_MAX_STRING_LENGTH
    max_byte_string_length: int = defaults.DEFAULT_MAX_BYTE_STRING_LENGTH


@dataclass(frozen=True)
class Variant:
    type: VariantType
    value: Any
    """
    A scalar, a list for arrays, or None for a null value / null array.
    """

    dimensions: tuple[int, ...] | None = None


class DecodeError(Exception):
    def __init__(self, status: StatusCode, message: str) -> None:
        super().__init__(f"{status.name}: {message}")
        self.status = status


class VariantDecoder:
    def __init__(self, stream: BinaryIO, options: DecodingOptions) -> None:
        self._stream = stream
        self._options = options

    def decode(self) -> Variant:
        mask = self._read_struct(_FIXED_FORMATS[VariantType.BYTE])
        type_id = mask & TYPE_MASK

        try:
            vtype = VariantType(type_id)
        except ValueError as ex:
            raise DecodeError(StatusCode.BAD_DECODING_ERROR, f"Unsupported variant type {type_id}") from ex

        is_array = bool(mask & ARRAY_FLAG)
        has_dimensions = bool(mask & DIMENSIONS_FLAG)

        if has_dimensions and not is_array:
            raise DecodeError(StatusCode.BAD_DECODING_ERROR, "Array dimensions set on a scalar")

        if vtype is VariantType.NULL:
            if is_array:
                raise DecodeError(StatusCode.BAD_DECODING_ERROR, "Null variant cannot be an array")
            return Variant(vtype, None)

        if not is_array:
            return Variant(vtype, self._read_scalar(vtype))

        values = self._read_array(vtype)
        dimensions = self._read_dimensions() if has_dimensions else None
        return Variant(vtype, values, dimensions)

    def _read(self, size: int) -> bytes:
        data = self._stream.read(size)
        if len(data) < size:
            raise DecodeError(
                StatusCode.BAD_DECODING_ERROR,
                f"Truncated input: expected {size} bytes, got {len(data)}"
            )
        return data

    def _read_struct(self, fmt: struct.Struct) -> Any:
        return fmt.unpack(self._read(fmt.size))[0]

    def _read_length(self, limit: int, what: str) -> int | None:
        length = self._read_struct(_INT32)
        if length == -1:
            return None
        if length < -1:
            raise DecodeError(StatusCode.BAD_DECODING_ERROR, f"Negative {what} length {length}")
        if length > limit:
            raise DecodeError(
                StatusCode.BAD_ENCODING_LIMITS_EXCEEDED,
                f"{what} length {length} exceeds the limit of {limit}"
            )
        return length

    def _read_scalar(self, vtype: VariantType) -> Any:
        if vtype is VariantType.STRING:
            length = self._read_length(self._options.max_string_length, "String")
            if length is None:
                return None
            try:
                return self._read(length).decode("utf-8")
            except UnicodeDecodeError as ex:
                raise DecodeError(StatusCode.BAD_DECODING_ERROR, f"Invalid UTF-8 string: {ex}") from ex

        if vtype is VariantType.BYTE_STRING:
            length = self._read_length(self._options.max_byte_string_length, "ByteString")
            if length is None:
                return None
            return self._read(length)

        if vtype is VariantType.GUID:
            return uuid.UUID(bytes_le=self._read(_GUID_SIZE))

        value = self._read_struct(_FIXED_FORMATS[vtype])
        if vtype is VariantType.BOOLEAN:
            return value != 0
        return value

    def _read_array(self, vtype: VariantType) -> list[Any] | None:
        length = self._read_length(self._options.max_array_length, "Array")
        if length is None:
            return None
        return [self._read_scalar(vtype) for _ in range(length)]

    def _read_dimensions(self) -> tuple[int, ...] | None:
        count = self._read_length(self._options.max_array_length, "Array dimensions")
        if count is None:
            return None

        dims = []
        for _ in range(count):
            dim = self._read_struct(_INT32)
            if dim < 0:
                raise DecodeError(StatusCode.BAD_DECODING_ERROR, f"Negative array dimension {dim}")
            dims.append(dim)
        return tuple(dims)


def decode(stream: BinaryIO, options: DecodingOptions) -> Variant:
    """Decode one Variant from ``stream``. Raises DecodeError on any malformed input."""
    return VariantDecoder(stream, options).decode()


def deserialize(data: bytes, options: DecodingOptions | None = None) -> Variant | StatusCode:
    """
    Decode a Variant from an untrusted payload.
    Returns the decoded value, or the status code describing why it was rejected.
    """
    try:
        return decode(io.BytesIO(data), options or DecodingOptions())
    except DecodeError as ex:
        logger.debug(f"Rejected payload of {len(data)} bytes: {ex}")
        return ex.status
