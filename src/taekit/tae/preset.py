from dataclasses import dataclass

from taekit.kernel2 import preset
from taekit.kernel2.cursor import BinaryReader, BinaryWriter


@dataclass(frozen=True)
class TAEFormat(preset.Preset):
    # DS1 family: counts precede offsets, no 16 byte padding
    legacy_field_order: bool = False
    # SOTFS: event group members are stored as varints with extra asserts
    wide_indices: bool = False

    def check_cursor(self, cursor: BinaryReader | BinaryWriter) -> None:
        if cursor.varint_long != self.varint_long:
            raise ValueError(  # noqa: TRY003
                f'cursor varint width ({cursor.varint_size * 8} bit) does not match'
                f' format {self!r}'
            )
        if cursor.big_endian != self.big_endian:
            raise ValueError(  # noqa: TRY003
                f'cursor byte order does not match format {self!r}'
            )


ds1 = TAEFormat(legacy_field_order=True)
ds1r = ds1(varint_long=True)
des = ds1(big_endian=True)
sotfs = TAEFormat(wide_indices=True, varint_long=True)
ds3 = TAEFormat(varint_long=True)
