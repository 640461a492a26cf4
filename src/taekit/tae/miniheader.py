from dataclasses import dataclass, replace
from enum import IntEnum
from typing import ClassVar, Union

from taekit.kernel2.cursor import BinaryReader, BinaryWriter
from taekit.kernel2.structured import StructuredTuple
from taekit.tae.errors import UnsupportedVariantError


class MiniHeaderType(IntEnum):
    STANDARD = 0
    IMPORT_OTHER_ANIM = 1


@dataclass
class Standard:
    """Standalone animation with its own motion data.

    When `imports_hkx` is set the motion data is taken from
    `import_hkx_source_anim_id` instead.
    """

    type: ClassVar[MiniHeaderType] = MiniHeaderType.STANDARD

    is_loop_by_default: bool = False
    imports_hkx: bool = False
    allow_delay_load: bool = False
    import_hkx_source_anim_id: int = 0

    def __post_init__(self) -> None:
        self.is_loop_by_default = bool(self.is_loop_by_default)
        self.imports_hkx = bool(self.imports_hkx)
        self.allow_delay_load = bool(self.allow_delay_load)

    def clone(self) -> 'Standard':
        return replace(self)


@dataclass
class ImportOtherAnim:
    """Animation importing both motion data and events from another animation."""

    type: ClassVar[MiniHeaderType] = MiniHeaderType.IMPORT_OTHER_ANIM

    import_from_anim_id: int = 0
    unknown: int = -1

    def clone(self) -> 'ImportOtherAnim':
        return replace(self)


MiniHeader = Union[Standard, ImportOtherAnim]

STANDARD = StructuredTuple(
    (
        ('is_loop_by_default', 'u1'),
        ('imports_hkx', 'u1'),
        ('allow_delay_load', 'u1'),
        ('_pad', 'u1'),
        ('import_hkx_source_anim_id', 'i4'),
    ),
    Standard,
    unchecked=('_pad',),
)

IMPORT_OTHER_ANIM = StructuredTuple(
    (
        ('import_from_anim_id', 'i4'),
        ('unknown', 'i4'),
    ),
    ImportOtherAnim,
)

INNER = {
    MiniHeaderType.STANDARD: STANDARD,
    MiniHeaderType.IMPORT_OTHER_ANIM: IMPORT_OTHER_ANIM,
}


def read_inner(reader: BinaryReader, tag: int) -> MiniHeader:
    if tag not in INNER:
        raise UnsupportedVariantError('mini header', tag)
    return INNER[MiniHeaderType(tag)].unpack(reader)


def write_inner(writer: BinaryWriter, mini_header: MiniHeader) -> None:
    INNER[mini_header.type].pack(writer, mini_header)
