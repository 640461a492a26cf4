from collections.abc import Callable, Container, Sequence
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import numpy as np
from numpy.typing import NDArray

from taekit.kernel2.errors import AssertionMismatchError

if TYPE_CHECKING:
    from taekit.kernel2.cursor import BinaryReader, BinaryWriter

ArrayBuffer = NDArray[np.uint8] | memoryview

T = TypeVar('T')

# fields with this prefix are stored on disk but must always be zero
RESERVED = '_'


def calc_align(offset: int, align: int) -> int:
    """Calculate difference from given offset to next aligned offset."""
    return (align - offset) % align


class StructuredTuple(Generic[T]):
    """Fixed-size record described by a little endian numpy dtype.

    Field names of the dtype are matched to attributes of the data class.
    Fields starting with an underscore are reserved: they are written as
    zero and asserted to be zero when read back, unless listed in `unchecked`.
    """

    __slots__ = ('names', 'dtype', 'factory', 'unchecked')

    def __init__(
        self,
        fields: Sequence[tuple[str, str]],
        factory: Callable[..., T],
        unchecked: Container[str] = (),
    ) -> None:
        self.dtype = np.dtype([(name, '<' + fmt) for name, fmt in fields])
        self.names = tuple(
            name for name in self.dtype.names or () if not name.startswith(RESERVED)
        )
        self.factory = factory
        self.unchecked = unchecked

    @property
    def itemsize(self) -> int:
        return self.dtype.itemsize

    def _dtype(self, big_endian: bool) -> np.dtype[Any]:
        return self.dtype.newbyteorder('>') if big_endian else self.dtype

    def unpack_fields(self, reader: 'BinaryReader') -> dict[str, Any]:
        offset = reader.position
        raw = reader.read(self.itemsize)
        record = np.frombuffer(raw, dtype=self._dtype(reader.big_endian), count=1)[0]
        for name in self.dtype.names or ():
            if name in self.unchecked or not name.startswith(RESERVED):
                continue
            if record[name] != 0:
                field_offset = offset + self.dtype.fields[name][1]
                raise AssertionMismatchError(0, int(record[name]), field_offset)
        return {name: record[name].item() for name in self.names}

    def unpack(self, reader: 'BinaryReader') -> T:
        return self.factory(**self.unpack_fields(reader))

    def pack(self, writer: 'BinaryWriter', data: T) -> None:
        htuple = tuple(
            0 if name.startswith(RESERVED) else getattr(data, name)
            for name in self.dtype.names or ()
        )
        record = np.array([htuple], dtype=self._dtype(writer.big_endian))[0]
        writer.write(record.tobytes())
