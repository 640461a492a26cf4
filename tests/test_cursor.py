import struct

import pytest

from taekit.kernel2.cursor import BinaryReader, BinaryWriter
from taekit.kernel2.errors import (
    AssertionMismatchError,
    MalformedInputError,
    ReservationError,
)


def test_varint_width_follows_mode():
    short = BinaryWriter()
    short.write_varint(-2)
    assert short.finish() == struct.pack('<i', -2)

    long = BinaryWriter(varint_long=True)
    long.write_varint(1 << 40)
    assert long.finish() == struct.pack('<q', 1 << 40)

    reader = BinaryReader(struct.pack('<q', 1 << 40), varint_long=True)
    assert reader.read_varint() == 1 << 40
    assert reader.position == 8


def test_big_endian():
    writer = BinaryWriter(big_endian=True)
    writer.write_int32(1)
    writer.write_utf16('ab')
    data = writer.finish()
    assert data == b'\x00\x00\x00\x01\x00a\x00b\x00\x00'

    reader = BinaryReader(data, big_endian=True)
    assert reader.read_int32() == 1
    assert reader.get_utf16(4) == 'ab'


def test_step_in_restores_position():
    reader = BinaryReader(struct.pack('<3i', 7, 8, 9))
    reader.read_int32()
    with reader.step_in(8):
        assert reader.read_int32() == 9
    assert reader.position == 4
    assert reader.read_int32() == 8


def test_step_in_restores_position_on_error():
    reader = BinaryReader(struct.pack('<2i', 7, 8))
    reader.read_int32()
    with pytest.raises(AssertionMismatchError), reader.step_in(0):
        reader.assert_int32(0)
    assert reader.position == 4


def test_read_past_end():
    reader = BinaryReader(b'\x01\x02')
    with pytest.raises(MalformedInputError):
        reader.read_int32()
    with pytest.raises(MalformedInputError):
        reader.get_int64(0)
    with pytest.raises(MalformedInputError):
        reader.get_utf16(0)


def test_assert_reports_values():
    reader = BinaryReader(struct.pack('<2i', 0, 5))
    reader.assert_int32(0)
    with pytest.raises(AssertionMismatchError) as excinfo:
        reader.assert_varint(4)
    assert excinfo.value.expected == 4
    assert excinfo.value.actual == 5
    assert excinfo.value.offset == 4


def test_utf16_peek_keeps_position():
    data = 'c0000.hkx'.encode('utf-16-le') + bytes(2)
    reader = BinaryReader(data)
    assert reader.get_utf16(0) == 'c0000.hkx'
    assert reader.position == 0


def test_pad():
    writer = BinaryWriter()
    writer.write_int8(1)
    writer.pad(0x10)
    assert len(writer) == 0x10
    writer.pad(0x10)
    assert len(writer) == 0x10


def test_reserve_fill():
    writer = BinaryWriter(varint_long=True)
    writer.reserve_varint('Offset')
    writer.reserve_int32('Count')
    writer.fill_int32('Count', 3)
    writer.fill_varint('Offset', writer.position)
    assert writer.finish() == struct.pack('<qi', 12, 3)


def test_fill_unknown_key():
    writer = BinaryWriter()
    with pytest.raises(ReservationError) as excinfo:
        writer.fill_varint('Missing', 0)
    assert excinfo.value.key == 'Missing'


def test_fill_twice():
    writer = BinaryWriter()
    writer.reserve_varint('Offset')
    writer.fill_varint('Offset', 0)
    with pytest.raises(ReservationError):
        writer.fill_varint('Offset', 4)


def test_reserve_twice():
    writer = BinaryWriter()
    writer.reserve_varint('Offset')
    with pytest.raises(ReservationError):
        writer.reserve_int32('Offset')


def test_finish_with_pending_reservation():
    writer = BinaryWriter()
    writer.reserve_varint('AnimationOffset0')
    assert writer.pending == ('AnimationOffset0',)
    with pytest.raises(ReservationError, match='AnimationOffset0'):
        writer.finish()


def test_utf16_unpaired_surrogate():
    data = struct.pack('<3H', 0xD800, ord('x'), 0)
    reader = BinaryReader(data)
    text = reader.get_utf16(0)
    assert text == '\ud800x'

    writer = BinaryWriter()
    writer.write_utf16(text)
    assert writer.finish() == data


@pytest.mark.parametrize(
    ('width', 'code', 'value'),
    [
        ('int8', 'b', -2),
        ('uint8', 'B', 0xFE),
        ('int16', 'h', -2),
        ('uint16', 'H', 0xFFFE),
        ('int32', 'i', -2),
        ('uint32', 'I', 0xFFFFFFFE),
        ('int64', 'q', -2),
    ],
)
@pytest.mark.parametrize('big_endian', [False, True])
def test_fixed_width_integers(width, code, value, big_endian):
    writer = BinaryWriter(big_endian=big_endian)
    getattr(writer, f'write_{width}')(value)
    data = writer.finish()
    assert data == struct.pack(f'{">" if big_endian else "<"}{code}', value)

    reader = BinaryReader(data, big_endian=big_endian)
    assert getattr(reader, f'read_{width}')() == value
    assert reader.position == len(data)
