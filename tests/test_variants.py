import struct

import pytest

from taekit.kernel2.cursor import BinaryReader, BinaryWriter
from taekit.kernel2.errors import AssertionMismatchError
from taekit.tae import groupdata, miniheader
from taekit.tae.errors import UnsupportedVariantError
from taekit.tae.groupdata import (
    ApplyToSpecificCutsceneEntity,
    EntityType,
    GroupData0,
    GroupData16,
    GroupData192,
)
from taekit.tae.miniheader import ImportOtherAnim, MiniHeaderType, Standard


def test_standard_inner_layout():
    writer = BinaryWriter()
    header = Standard(
        is_loop_by_default=True,
        allow_delay_load=True,
        import_hkx_source_anim_id=3000,
    )
    miniheader.write_inner(writer, header)
    data = writer.finish()
    assert data == struct.pack('<4Bi', 1, 0, 1, 0, 3000)

    assert miniheader.read_inner(BinaryReader(data), MiniHeaderType.STANDARD) == header


def test_standard_ignores_pad_byte():
    data = struct.pack('<4Bi', 0, 1, 0, 0xFF, 12)
    header = miniheader.read_inner(BinaryReader(data), 0)
    assert header == Standard(imports_hkx=True, import_hkx_source_anim_id=12)


def test_import_other_anim_defaults():
    header = ImportOtherAnim()
    assert header.unknown == -1
    assert header.type == MiniHeaderType.IMPORT_OTHER_ANIM

    writer = BinaryWriter(big_endian=True)
    miniheader.write_inner(writer, ImportOtherAnim(import_from_anim_id=20))
    data = writer.finish()
    assert data == struct.pack('>2i', 20, -1)
    assert miniheader.read_inner(BinaryReader(data, big_endian=True), 1) == (
        ImportOtherAnim(import_from_anim_id=20)
    )


def test_unknown_mini_header_type():
    with pytest.raises(UnsupportedVariantError) as excinfo:
        miniheader.read_inner(BinaryReader(bytes(8)), 2)
    assert excinfo.value.tag == 2


def test_mini_header_clone_is_independent():
    header = Standard(is_loop_by_default=True)
    clone = header.clone()
    clone.is_loop_by_default = False
    assert header.is_loop_by_default
    assert clone == Standard()


@pytest.mark.parametrize(
    ('group_type', 'variant'),
    [
        (0, GroupData0),
        (16, GroupData16),
        (128, ApplyToSpecificCutsceneEntity),
        (192, GroupData192),
    ],
)
def test_group_data_for_group_type(group_type, variant):
    group_data = groupdata.create(group_type)
    assert isinstance(group_data, variant)
    assert group_data.for_group_type == group_type


def test_group_data_unknown_group_type():
    assert groupdata.create(64) is None
    assert groupdata.read(BinaryReader(bytes(4)), 64) is None


def test_empty_group_data_stores_null_offset():
    writer = BinaryWriter()
    writer.write_int32(7)
    groupdata.write(writer, GroupData16(), 'EventGroupDataOffset0:0')
    assert writer.finish() == struct.pack('<2i', 7, 0)


def test_cutscene_entity_layout():
    writer = BinaryWriter()
    writer.write_int32(7)
    entity = ApplyToSpecificCutsceneEntity(
        entity_type=EntityType.MAP_PIECE,
        entity_id_part1=10,
        entity_id_part2=-3,
        block=2,
    )
    groupdata.write(writer, entity, 'EventGroupDataOffset0:0')
    data = writer.finish()
    assert data == struct.pack('<2iH2h2b2i', 7, 8, 2, 10, -3, 2, -1, 0, 0)

    reader = BinaryReader(data, position=4)
    decoded = groupdata.read(reader, 128)
    assert decoded == entity
    assert decoded.entity_type is EntityType.MAP_PIECE
    assert reader.position == len(data)


def test_cutscene_entity_null_offset_keeps_defaults():
    reader = BinaryReader(struct.pack('<i', 0))
    decoded = groupdata.read(reader, 128)
    assert decoded == ApplyToSpecificCutsceneEntity()
    assert (decoded.block, decoded.area) == (-1, -1)
    assert reader.position == 4


def test_cutscene_entity_reserved_words():
    data = struct.pack('<iH2h2b2i', 4, 0, 1, 1, -1, -1, 0, 5)
    with pytest.raises(AssertionMismatchError) as excinfo:
        groupdata.read(BinaryReader(data), 128)
    assert excinfo.value.offset == 16


def test_cutscene_entity_unknown_entity_type():
    data = struct.pack('<iH2h2b2i', 4, 3, 1, 1, -1, -1, 0, 0)
    with pytest.raises(UnsupportedVariantError):
        groupdata.read(BinaryReader(data), 128)
