from dataclasses import dataclass, replace
from enum import IntEnum
from typing import ClassVar, Union

from taekit.kernel2.cursor import BinaryReader, BinaryWriter
from taekit.kernel2.structured import StructuredTuple
from taekit.tae.errors import UnsupportedVariantError


class EventGroupDataType(IntEnum):
    GROUP_DATA_0 = 0
    GROUP_DATA_16 = 16
    APPLY_TO_SPECIFIC_CUTSCENE_ENTITY = 128
    GROUP_DATA_192 = 192


class EntityType(IntEnum):
    CHARACTER = 0
    OBJECT = 1
    MAP_PIECE = 2
    DUMMY_NODE = 4


@dataclass
class GroupData0:
    for_group_type: ClassVar[EventGroupDataType] = EventGroupDataType.GROUP_DATA_0

    def clone(self) -> 'GroupData0':
        return replace(self)


@dataclass
class GroupData16:
    for_group_type: ClassVar[EventGroupDataType] = EventGroupDataType.GROUP_DATA_16

    def clone(self) -> 'GroupData16':
        return replace(self)


@dataclass
class ApplyToSpecificCutsceneEntity:
    for_group_type: ClassVar[EventGroupDataType] = (
        EventGroupDataType.APPLY_TO_SPECIFIC_CUTSCENE_ENTITY
    )

    entity_type: EntityType = EntityType.CHARACTER
    entity_id_part1: int = 0
    entity_id_part2: int = 0
    block: int = -1
    area: int = -1

    def __post_init__(self) -> None:
        self.entity_type = EntityType(self.entity_type)

    def clone(self) -> 'ApplyToSpecificCutsceneEntity':
        return replace(self)


@dataclass
class GroupData192:
    for_group_type: ClassVar[EventGroupDataType] = EventGroupDataType.GROUP_DATA_192

    def clone(self) -> 'GroupData192':
        return replace(self)


EventGroupData = Union[
    GroupData0,
    GroupData16,
    ApplyToSpecificCutsceneEntity,
    GroupData192,
]

VARIANTS: dict[int, type[EventGroupData]] = {
    EventGroupDataType.GROUP_DATA_0: GroupData0,
    EventGroupDataType.GROUP_DATA_16: GroupData16,
    EventGroupDataType.APPLY_TO_SPECIFIC_CUTSCENE_ENTITY: ApplyToSpecificCutsceneEntity,
    EventGroupDataType.GROUP_DATA_192: GroupData192,
}

CUTSCENE_ENTITY = StructuredTuple(
    (
        ('entity_type', 'u2'),
        ('entity_id_part1', 'i2'),
        ('entity_id_part2', 'i2'),
        ('block', 'i1'),
        ('area', 'i1'),
        ('_zero0', 'i4'),
        ('_zero1', 'i4'),
    ),
    ApplyToSpecificCutsceneEntity,
)

INNER: dict[int, StructuredTuple[EventGroupData]] = {
    EventGroupDataType.APPLY_TO_SPECIFIC_CUTSCENE_ENTITY: CUTSCENE_ENTITY,
}


def create(group_type: int) -> EventGroupData | None:
    variant = VARIANTS.get(group_type)
    return variant() if variant else None


def read(reader: BinaryReader, group_type: int) -> EventGroupData | None:
    group_data = create(group_type)
    if group_data is None:
        return None

    data_offset = reader.read_varint()
    inner = INNER.get(group_type)
    if data_offset != 0 and inner:
        fields = inner.unpack_fields(reader)
        try:
            group_data = inner.factory(**fields)
        except ValueError:
            raise UnsupportedVariantError(
                'cutscene entity', fields['entity_type']
            ) from None
    return group_data


def write(writer: BinaryWriter, group_data: EventGroupData, key: str) -> None:
    writer.reserve_varint(key)
    data_start = writer.position
    inner = INNER.get(group_data.for_group_type)
    if inner:
        inner.pack(writer, group_data)
    # variants without inner fields store a null data offset
    writer.fill_varint(key, data_start if writer.position != data_start else 0)
