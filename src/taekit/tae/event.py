from collections.abc import Mapping
from dataclasses import dataclass, replace

import numpy as np

from taekit.kernel2.cursor import BinaryReader, BinaryWriter
from taekit.kernel2.errors import MalformedInputError
from taekit.tae.preset import TAEFormat


def as_float32(value: float) -> float:
    return np.float32(value).item()


def time_key(value: float) -> bytes:
    """Float32 bit pattern of a time. NaN matches itself, -0.0 matches 0.0."""
    return (np.float32(value) + np.float32(0)).tobytes()


@dataclass
class Event:
    """A timed event with an opaque parameter block."""

    type: int
    start_time: float
    end_time: float
    unk04: int = 0
    parameters: bytes = b''

    def clone(self) -> 'Event':
        return replace(self)


def data_header_size(cursor: BinaryReader | BinaryWriter) -> int:
    """Size of the type and parameter offset fields preceding parameters."""
    return 16 if cursor.varint_long else 8


def read_event(reader: BinaryReader, fmt: TAEFormat) -> tuple[Event, int]:
    start_time_offset = reader.read_varint()
    end_time_offset = reader.read_varint()
    data_offset = reader.read_varint()

    start_time = reader.get_float32(start_time_offset)
    end_time = reader.get_float32(end_time_offset)

    with reader.step_in(data_offset):
        event_type = reader.read_int32()
        unk04 = reader.read_int32() if reader.varint_long else 0
        parameter_offset = reader.read_varint()

    return Event(event_type, start_time, end_time, unk04), parameter_offset


def read_parameters(reader: BinaryReader, event: Event, length: int) -> None:
    if length < 0:
        raise MalformedInputError(
            f'negative parameter block length {length}', reader.position
        )
    event.parameters = reader.read(length)


def write_header(
    writer: BinaryWriter,
    event: Event,
    anim_index: int,
    event_index: int,
    time_offsets: Mapping[bytes, int],
) -> None:
    writer.write_varint(time_offsets[time_key(event.start_time)])
    writer.write_varint(time_offsets[time_key(event.end_time)])
    writer.reserve_varint(f'EventDataOffset{anim_index}:{event_index}')


def write_data(
    writer: BinaryWriter,
    event: Event,
    anim_index: int,
    event_index: int,
    fmt: TAEFormat,
) -> None:
    writer.fill_varint(f'EventDataOffset{anim_index}:{event_index}', writer.position)
    writer.write_int32(event.type)
    if writer.varint_long:
        writer.write_int32(event.unk04)
    writer.write_varint(writer.position + writer.varint_size)
    writer.write(event.parameters)

    if not fmt.legacy_field_order:
        writer.pad(0x10)
