import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np

from taekit.kernel2.cursor import BinaryReader, BinaryWriter
from taekit.kernel2.structured import ArrayBuffer
from taekit.tae import event, event_group, miniheader
from taekit.tae.event import Event, as_float32
from taekit.tae.event_group import EventGroup
from taekit.tae.miniheader import MiniHeader, MiniHeaderType, Standard
from taekit.tae.preset import TAEFormat

# an anim file name offset pointing at a float in this range is a frame time
FRAME_TIME_MIN = np.float32(0.016667)
FRAME_TIME_MAX = np.float32(100)


@dataclass
class Animation:
    id: int
    mini_header: MiniHeader = field(default_factory=Standard)
    file_name: str = ''
    events: list[Event] = field(default_factory=list)
    event_groups: list[EventGroup] = field(default_factory=list)

    def clone(self) -> 'Animation':
        return Animation(
            self.id,
            self.mini_header.clone(),
            self.file_name,
            [evt.clone() for evt in self.events],
            [group.clone() for group in self.event_groups],
        )


class AnimationReadResult(NamedTuple):
    animation: Animation
    last_event_needs_params: bool
    anim_file_offset: int
    last_event_param_offset: int


@dataclass(frozen=True)
class _BodyHeader:
    event_count: int
    event_headers_offset: int
    event_group_count: int
    event_groups_offset: int
    times_offset: int
    anim_file_offset: int


def _read_body_header(reader: BinaryReader, fmt: TAEFormat) -> _BodyHeader:
    if fmt.legacy_field_order:
        event_count = reader.read_int32()
        event_headers_offset = reader.read_varint()
        event_group_count = reader.read_int32()
        event_groups_offset = reader.read_varint()
        reader.read_int32()  # times count
        times_offset = reader.read_varint()
        anim_file_offset = reader.read_varint()
    else:
        event_headers_offset = reader.read_varint()
        event_groups_offset = reader.read_varint()
        times_offset = reader.read_varint()
        anim_file_offset = reader.read_varint()
        event_count = reader.read_int32()
        event_group_count = reader.read_int32()
        reader.read_int32()  # times count
        reader.assert_int32(0)
    return _BodyHeader(
        event_count,
        event_headers_offset,
        event_group_count,
        event_groups_offset,
        times_offset,
        anim_file_offset,
    )


def _read_file_name(
    reader: BinaryReader,
    file_name_offset: int,
    times_offset: int,
    fmt: TAEFormat,
) -> str:
    if file_name_offset >= len(reader) or file_name_offset == times_offset:
        return ''
    remaining = len(reader) - file_name_offset
    if remaining >= 8 and reader.get_int64(file_name_offset) == 1:
        return ''
    float_check = reader.get_float32(file_name_offset) if remaining >= 4 else 0.0
    if FRAME_TIME_MIN <= float_check <= FRAME_TIME_MAX:
        getattr(fmt, 'logger', logging).debug(
            f'anim file name offset 0x{file_name_offset:X}'
            f' points at frame time {float_check}',
        )
        return ''
    return reader.get_utf16(file_name_offset) or ''


def _trailing_offsets(mini_header: MiniHeader, fmt: TAEFormat) -> int:
    # legacy files drop the second null offset after a standard mini header
    if fmt.legacy_field_order and mini_header.type == MiniHeaderType.STANDARD:
        return 1
    return 2


def _read_anim_file(
    reader: BinaryReader,
    times_offset: int,
    fmt: TAEFormat,
) -> tuple[MiniHeader, str]:
    tag = reader.read_uint32()
    if reader.varint_long:
        reader.assert_int32(0)

    reader.assert_varint(reader.position + reader.varint_size)
    file_name_offset = reader.read_varint()

    mini_header = miniheader.read_inner(reader, tag)

    for _ in range(_trailing_offsets(mini_header, fmt)):
        reader.assert_varint(0)

    return mini_header, _read_file_name(reader, file_name_offset, times_offset, fmt)


def read_animation(reader: BinaryReader, fmt: TAEFormat) -> AnimationReadResult:
    """Read one animation header and everything it points to.

    Parameter blocks have no stored length: each one spans up to the data
    header of the following event. The last block is bounded by the event
    groups, and when there are none the caller must bound it using
    `resolve_last_event_parameters` (`last_event_needs_params` is set).
    """
    fmt.check_cursor(reader)
    logger = getattr(fmt, 'logger', logging)

    anim_id = reader.read_varint()
    offset = reader.read_varint()
    logger.debug(f'reading animation {anim_id} at 0x{offset:X}')

    last_event_needs_params = False
    last_event_param_offset = 0

    with reader.step_in(offset):
        header = _read_body_header(reader, fmt)
        header_size = event.data_header_size(reader)

        events: list[Event] = []
        event_header_offsets: list[int] = []
        param_offsets: list[int] = []
        with reader.step_in(header.event_headers_offset):
            for idx in range(header.event_count):
                event_header_offsets.append(reader.position)
                evt, param_offset = event.read_event(reader, fmt)
                events.append(evt)
                param_offsets.append(param_offset)

                if idx > 0:
                    gap = param_offsets[idx] - param_offsets[idx - 1]
                    with reader.step_in(param_offsets[idx - 1]):
                        event.read_parameters(
                            reader, events[idx - 1], gap - header_size
                        )

        if events:
            if header.event_groups_offset == 0:
                last_event_needs_params = True
                last_event_param_offset = param_offsets[-1]
                logger.debug(
                    f'animation {anim_id}: last event parameters deferred to caller',
                )
            else:
                with reader.step_in(param_offsets[-1]):
                    event.read_parameters(
                        reader,
                        events[-1],
                        header.event_groups_offset - param_offsets[-1],
                    )

        with reader.step_in(header.event_groups_offset):
            event_groups = [
                event_group.read_event_group(reader, event_header_offsets, fmt)
                for _ in range(header.event_group_count)
            ]

        with reader.step_in(header.anim_file_offset):
            mini_header, file_name = _read_anim_file(reader, header.times_offset, fmt)

    animation = Animation(anim_id, mini_header, file_name, events, event_groups)
    return AnimationReadResult(
        animation,
        last_event_needs_params,
        header.anim_file_offset,
        last_event_param_offset,
    )


def resolve_last_event_parameters(
    reader: BinaryReader,
    animation: Animation,
    last_event_param_offset: int,
    end_offset: int,
) -> None:
    with reader.step_in(last_event_param_offset):
        event.read_parameters(
            reader,
            animation.events[-1],
            end_offset - last_event_param_offset,
        )


def write_header(writer: BinaryWriter, animation: Animation, index: int) -> None:
    writer.write_varint(animation.id)
    writer.reserve_varint(f'AnimationOffset{index}')


def write_body(
    writer: BinaryWriter,
    animation: Animation,
    index: int,
    fmt: TAEFormat,
) -> None:
    writer.fill_varint(f'AnimationOffset{index}', writer.position)

    if fmt.legacy_field_order:
        writer.write_int32(len(animation.events))
        writer.reserve_varint(f'EventHeadersOffset{index}')
        writer.write_int32(len(animation.event_groups))
        writer.reserve_varint(f'EventGroupHeadersOffset{index}')
        writer.reserve_int32(f'TimesCount{index}')
        writer.reserve_varint(f'TimesOffset{index}')
        writer.reserve_varint(f'AnimFileOffset{index}')
    else:
        writer.reserve_varint(f'EventHeadersOffset{index}')
        writer.reserve_varint(f'EventGroupHeadersOffset{index}')
        writer.reserve_varint(f'TimesOffset{index}')
        writer.reserve_varint(f'AnimFileOffset{index}')
        writer.write_int32(len(animation.events))
        writer.write_int32(len(animation.event_groups))
        writer.reserve_int32(f'TimesCount{index}')
        writer.write_int32(0)


def write_anim_file(
    writer: BinaryWriter,
    animation: Animation,
    index: int,
    fmt: TAEFormat,
) -> None:
    writer.fill_varint(f'AnimFileOffset{index}', writer.position)

    mini_header = animation.mini_header
    writer.write_uint32(mini_header.type)
    if writer.varint_long:
        writer.write_int32(0)
    writer.write_varint(writer.position + writer.varint_size)
    writer.reserve_varint(f'AnimFileNameOffset{index}')

    miniheader.write_inner(writer, mini_header)

    for _ in range(_trailing_offsets(mini_header, fmt)):
        writer.write_varint(0)

    writer.fill_varint(f'AnimFileNameOffset{index}', writer.position)
    if animation.file_name:
        writer.write_utf16(animation.file_name, terminate=True)
        if not fmt.legacy_field_order:
            writer.pad(0x10)


def write_times(
    writer: BinaryWriter,
    animation: Animation,
    index: int,
    fmt: TAEFormat,
) -> dict[bytes, int]:
    unique: dict[bytes, float] = {}
    for evt in animation.events:
        for time in (evt.start_time, evt.end_time):
            unique.setdefault(event.time_key(time), as_float32(time))
    # NaN sorts last
    times = sorted(unique.items(), key=lambda item: (math.isnan(item[1]), item[1]))

    writer.fill_int32(f'TimesCount{index}', len(times))
    writer.fill_varint(f'TimesOffset{index}', writer.position if times else 0)

    time_offsets = {}
    for key, time in times:
        time_offsets[key] = writer.position
        writer.write_float32(time)

    if not fmt.legacy_field_order:
        writer.pad(0x10)

    return time_offsets


def write_event_headers(
    writer: BinaryWriter,
    animation: Animation,
    index: int,
    time_offsets: Mapping[bytes, int],
) -> list[int]:
    if not animation.events:
        writer.fill_varint(f'EventHeadersOffset{index}', 0)
        return []

    writer.fill_varint(f'EventHeadersOffset{index}', writer.position)
    event_header_offsets = []
    for idx, evt in enumerate(animation.events):
        event_header_offsets.append(writer.position)
        event.write_header(writer, evt, index, idx, time_offsets)
    return event_header_offsets


def write_event_data(
    writer: BinaryWriter,
    animation: Animation,
    index: int,
    fmt: TAEFormat,
) -> None:
    for idx, evt in enumerate(animation.events):
        event.write_data(writer, evt, index, idx, fmt)


def write_event_group_headers(
    writer: BinaryWriter,
    animation: Animation,
    index: int,
    fmt: TAEFormat,
) -> None:
    if not animation.event_groups:
        writer.fill_varint(f'EventGroupHeadersOffset{index}', 0)
        return

    writer.fill_varint(f'EventGroupHeadersOffset{index}', writer.position)
    for idx, group in enumerate(animation.event_groups):
        event_group.write_header(writer, group, index, idx, fmt)


def write_event_group_data(
    writer: BinaryWriter,
    animation: Animation,
    index: int,
    event_header_offsets: Sequence[int],
    fmt: TAEFormat,
) -> None:
    for idx, group in enumerate(animation.event_groups):
        event_group.write_data(writer, group, index, idx, event_header_offsets, fmt)


def write_animation(
    writer: BinaryWriter,
    animation: Animation,
    index: int,
    fmt: TAEFormat,
) -> None:
    """Write a standalone animation, running every pass back to back."""
    fmt.check_cursor(writer)
    getattr(fmt, 'logger', logging).debug(
        f'writing animation {animation.id} at 0x{writer.position:X}',
    )

    write_header(writer, animation, index)
    write_body(writer, animation, index, fmt)
    write_anim_file(writer, animation, index, fmt)
    time_offsets = write_times(writer, animation, index, fmt)
    event_header_offsets = write_event_headers(writer, animation, index, time_offsets)
    write_event_data(writer, animation, index, fmt)
    write_event_group_headers(writer, animation, index, fmt)
    write_event_group_data(writer, animation, index, event_header_offsets, fmt)


def from_bytes(data: ArrayBuffer | bytes, fmt: TAEFormat) -> Animation:
    reader = fmt.reader(data)
    result = read_animation(reader, fmt)
    if result.last_event_needs_params:
        resolve_last_event_parameters(
            reader,
            result.animation,
            result.last_event_param_offset,
            len(reader),
        )
    return result.animation


def to_bytes(animation: Animation, fmt: TAEFormat, index: int = 0) -> bytes:
    writer = fmt.writer()
    write_animation(writer, animation, index, fmt)
    return writer.finish()
