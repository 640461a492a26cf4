import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from taekit.kernel2.cursor import BinaryReader, BinaryWriter
from taekit.tae import groupdata
from taekit.tae.errors import DanglingReferenceError, GroupDataTypeMismatchError
from taekit.tae.groupdata import EventGroupData
from taekit.tae.preset import TAEFormat


@dataclass
class EventGroup:
    """A group of events sharing a group type that need not match their own.

    `indices` point into the owning animation's event list. Group types
    with a known data layout get its default payload when none is given.
    """

    group_type: int
    indices: list[int] = field(default_factory=list)
    group_data: EventGroupData | None = None

    def __post_init__(self) -> None:
        if self.group_data is None:
            self.group_data = groupdata.create(self.group_type)

    def clone(self) -> 'EventGroup':
        return EventGroup(
            self.group_type,
            list(self.indices),
            self.group_data.clone() if self.group_data else None,
        )


def _index_lookup(event_header_offsets: Sequence[int]) -> dict[int, int]:
    lookup: dict[int, int] = {}
    for idx, offset in enumerate(event_header_offsets):
        lookup.setdefault(offset, idx)
    return lookup


def read_event_group(
    reader: BinaryReader,
    event_header_offsets: Sequence[int],
    fmt: TAEFormat,
) -> EventGroup:
    entry_count = reader.read_varint()
    values_offset = reader.read_varint()
    type_offset = reader.read_varint()
    if not fmt.legacy_field_order:
        reader.assert_varint(0)

    group_data = None
    with reader.step_in(type_offset):
        group_type = reader.read_varint()
        if fmt.wide_indices:
            reader.assert_varint(reader.position + reader.varint_size)
            reader.assert_varint(0)
            reader.assert_varint(0)
        elif not fmt.legacy_field_order:
            reader.assert_varint(0)
        else:
            group_data = groupdata.read(reader, group_type)
            if group_data is None:
                getattr(fmt, 'logger', logging).warning(
                    f'no group data layout known for group type {group_type}',
                )

    with reader.step_in(values_offset):
        if fmt.wide_indices:
            stored = reader.read_varints(entry_count)
        else:
            stored = reader.read_int32s(entry_count)

    lookup = _index_lookup(event_header_offsets)
    indices = []
    for offset in stored:
        if offset not in lookup:
            raise DanglingReferenceError(
                f'event group references unknown event header at 0x{offset:X}',
                offset,
            )
        indices.append(lookup[offset])

    return EventGroup(group_type, indices, group_data)


def write_header(
    writer: BinaryWriter,
    group: EventGroup,
    anim_index: int,
    group_index: int,
    fmt: TAEFormat,
) -> None:
    writer.write_varint(len(group.indices))
    writer.reserve_varint(f'EventGroupValuesOffset{anim_index}:{group_index}')
    writer.reserve_varint(f'EventGroupTypeOffset{anim_index}:{group_index}')
    if not fmt.legacy_field_order:
        writer.write_varint(0)


def write_data(
    writer: BinaryWriter,
    group: EventGroup,
    anim_index: int,
    group_index: int,
    event_header_offsets: Sequence[int],
    fmt: TAEFormat,
) -> None:
    if group.group_data and group.group_data.for_group_type != group.group_type:
        raise GroupDataTypeMismatchError(
            group.group_type, group.group_data.for_group_type
        )
    for index in group.indices:
        if not 0 <= index < len(event_header_offsets):
            raise DanglingReferenceError(
                f'event group references event {index}'
                f' of {len(event_header_offsets)}',
                index,
            )

    writer.fill_varint(
        f'EventGroupTypeOffset{anim_index}:{group_index}', writer.position
    )
    writer.write_varint(group.group_type)

    if fmt.wide_indices:
        writer.write_varint(writer.position + writer.varint_size)
        writer.write_varint(0)
        writer.write_varint(0)
    elif not fmt.legacy_field_order:
        writer.write_varint(0)
    else:
        # readers expect the data offset for every known group type
        group_data = group.group_data or groupdata.create(group.group_type)
        if group_data:
            groupdata.write(
                writer,
                group_data,
                f'EventGroupDataOffset{anim_index}:{group_index}',
            )

    if (
        not fmt.legacy_field_order
        and group.group_data is not None
        and group.group_data != groupdata.create(group.group_type)
    ):
        getattr(fmt, 'logger', logging).warning(
            f'group data of event group {anim_index}:{group_index}'
            ' is only stored in legacy files, skipping',
        )

    writer.fill_varint(
        f'EventGroupValuesOffset{anim_index}:{group_index}', writer.position
    )
    for index in group.indices:
        if fmt.wide_indices:
            writer.write_varint(event_header_offsets[index])
        else:
            writer.write_int32(event_header_offsets[index])

    if not fmt.legacy_field_order:
        writer.pad(0x10)
