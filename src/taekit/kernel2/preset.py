import logging
from dataclasses import dataclass, field, replace
from typing import Any, Self

from taekit.kernel2.cursor import BinaryReader, BinaryWriter
from taekit.kernel2.structured import ArrayBuffer


@dataclass(frozen=True)
class _DefaultOverride:
    def __call__(self, **kwargs: Any) -> Self:
        return replace(self, **kwargs)


@dataclass(frozen=True)
class Preset(_DefaultOverride):
    varint_long: bool = False
    big_endian: bool = False
    logger: logging.Logger = field(
        default=logging.getLogger('taekit'),
        compare=False,
        repr=False,
    )

    def reader(self, buffer: ArrayBuffer | bytes, position: int = 0) -> BinaryReader:
        return BinaryReader(
            buffer,
            varint_long=self.varint_long,
            big_endian=self.big_endian,
            position=position,
        )

    def writer(self) -> BinaryWriter:
        return BinaryWriter(varint_long=self.varint_long, big_endian=self.big_endian)

