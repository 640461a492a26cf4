import struct
from collections.abc import Iterator
from contextlib import contextmanager

from taekit.kernel2.errors import (
    AssertionMismatchError,
    MalformedInputError,
    ReservationError,
)
from taekit.kernel2.structured import ArrayBuffer, calc_align


def _codecs(big_endian: bool) -> dict[str, struct.Struct]:
    order = '>' if big_endian else '<'
    return {
        fmt: struct.Struct(order + fmt)
        for fmt in ('b', 'B', 'h', 'H', 'i', 'I', 'q', 'f')
    }


class BinaryReader:
    __slots__ = ('buffer', 'position', 'varint_long', 'big_endian', '_codecs')

    def __init__(
        self,
        buffer: ArrayBuffer | bytes,
        *,
        varint_long: bool = False,
        big_endian: bool = False,
        position: int = 0,
    ) -> None:
        self.buffer = memoryview(buffer).cast('B')
        self.position = position
        self.varint_long = varint_long
        self.big_endian = big_endian
        self._codecs = _codecs(big_endian)

    def __len__(self) -> int:
        return len(self.buffer)

    @property
    def varint_size(self) -> int:
        return 8 if self.varint_long else 4

    @property
    def byteorder(self) -> str:
        return '>' if self.big_endian else '<'

    @contextmanager
    def step_in(self, offset: int) -> Iterator[None]:
        """Move to an absolute offset, restoring the previous position on exit."""
        saved = self.position
        self.position = offset
        try:
            yield
        finally:
            self.position = saved

    def _slice(self, offset: int, size: int) -> memoryview:
        if size < 0:
            raise MalformedInputError(f'negative read size {size}', offset)
        if offset < 0 or offset + size > len(self.buffer):
            raise MalformedInputError(
                f'read of {size} bytes runs past end of buffer ({len(self.buffer)})',
                offset,
            )
        return self.buffer[offset : offset + size]

    def read(self, size: int) -> bytes:
        data = self._slice(self.position, size).tobytes()
        self.position += size
        return data

    def _read(self, fmt: str) -> int | float:
        codec = self._codecs[fmt]
        (value,) = codec.unpack(self._slice(self.position, codec.size))
        self.position += codec.size
        return value

    def _get(self, fmt: str, offset: int) -> int | float:
        codec = self._codecs[fmt]
        return codec.unpack(self._slice(offset, codec.size))[0]

    def read_int8(self) -> int:
        return int(self._read('b'))

    def read_uint8(self) -> int:
        return int(self._read('B'))

    def read_int16(self) -> int:
        return int(self._read('h'))

    def read_uint16(self) -> int:
        return int(self._read('H'))

    def read_int32(self) -> int:
        return int(self._read('i'))

    def read_uint32(self) -> int:
        return int(self._read('I'))

    def read_int64(self) -> int:
        return int(self._read('q'))

    def read_float32(self) -> float:
        return float(self._read('f'))

    def read_varint(self) -> int:
        return self.read_int64() if self.varint_long else self.read_int32()

    def read_varints(self, count: int) -> list[int]:
        return [self.read_varint() for _ in range(count)]

    def read_int32s(self, count: int) -> list[int]:
        return [self.read_int32() for _ in range(count)]

    def get_int64(self, offset: int) -> int:
        return int(self._get('q', offset))

    def get_float32(self, offset: int) -> float:
        return float(self._get('f', offset))

    def get_utf16(self, offset: int) -> str:
        """Read a null-terminated UTF-16 string without moving the cursor."""
        units = []
        while True:
            unit = int(self._get('H', offset))
            if unit == 0:
                break
            units.append(unit)
            offset += 2
        encoding = 'utf-16-be' if self.big_endian else 'utf-16-le'
        fmt = f'{self.byteorder}{len(units)}H'
        # unpaired surrogates are kept so the name re-encodes byte for byte
        return struct.pack(fmt, *units).decode(encoding, 'surrogatepass')

    def assert_int32(self, expected: int) -> int:
        offset = self.position
        actual = self.read_int32()
        if actual != expected:
            raise AssertionMismatchError(expected, actual, offset)
        return actual

    def assert_varint(self, expected: int) -> int:
        offset = self.position
        actual = self.read_varint()
        if actual != expected:
            raise AssertionMismatchError(expected, actual, offset)
        return actual


class BinaryWriter:
    __slots__ = (
        'stream',
        'varint_long',
        'big_endian',
        '_codecs',
        '_reservations',
        '_filled',
    )

    def __init__(self, *, varint_long: bool = False, big_endian: bool = False) -> None:
        self.stream = bytearray()
        self.varint_long = varint_long
        self.big_endian = big_endian
        self._codecs = _codecs(big_endian)
        self._reservations: dict[str, tuple[int, struct.Struct]] = {}
        self._filled: set[str] = set()

    def __len__(self) -> int:
        return len(self.stream)

    @property
    def position(self) -> int:
        return len(self.stream)

    @property
    def varint_size(self) -> int:
        return 8 if self.varint_long else 4

    @property
    def pending(self) -> tuple[str, ...]:
        return tuple(self._reservations)

    def write(self, data: bytes) -> None:
        self.stream += data

    def _write(self, fmt: str, value: int | float) -> None:
        self.stream += self._codecs[fmt].pack(value)

    def write_int8(self, value: int) -> None:
        self._write('b', value)

    def write_uint8(self, value: int) -> None:
        self._write('B', value)

    def write_int16(self, value: int) -> None:
        self._write('h', value)

    def write_uint16(self, value: int) -> None:
        self._write('H', value)

    def write_int32(self, value: int) -> None:
        self._write('i', value)

    def write_uint32(self, value: int) -> None:
        self._write('I', value)

    def write_int64(self, value: int) -> None:
        self._write('q', value)

    def write_float32(self, value: float) -> None:
        self._write('f', value)

    def write_varint(self, value: int) -> None:
        self._write('q' if self.varint_long else 'i', value)

    def write_utf16(self, text: str, terminate: bool = True) -> None:
        encoding = 'utf-16-be' if self.big_endian else 'utf-16-le'
        self.stream += text.encode(encoding, 'surrogatepass')
        if terminate:
            self.stream += bytes(2)

    def pad(self, alignment: int) -> None:
        self.stream += bytes(calc_align(self.position, alignment))

    def _reserve(self, key: str, fmt: str) -> None:
        if key in self._reservations or key in self._filled:
            raise ReservationError(f'key reserved twice: {key}', key)
        codec = self._codecs[fmt]
        self._reservations[key] = (self.position, codec)
        self.stream += bytes(codec.size)

    def _fill(self, key: str, value: int) -> None:
        if key in self._filled:
            raise ReservationError(f'key already filled: {key}', key)
        if key not in self._reservations:
            raise ReservationError(f'key was never reserved: {key}', key)
        offset, codec = self._reservations.pop(key)
        codec.pack_into(self.stream, offset, value)
        self._filled.add(key)

    def reserve_int32(self, key: str) -> None:
        self._reserve(key, 'i')

    def fill_int32(self, key: str, value: int) -> None:
        self._fill(key, value)

    def reserve_varint(self, key: str) -> None:
        self._reserve(key, 'q' if self.varint_long else 'i')

    def fill_varint(self, key: str, value: int) -> None:
        self._fill(key, value)

    def finish(self) -> bytes:
        if self._reservations:
            keys = ', '.join(self._reservations)
            raise ReservationError(f'reservations were not filled: {keys}')
        return bytes(self.stream)
