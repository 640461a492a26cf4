import struct

import pytest

from taekit.tae.animation import Animation
from taekit.tae.event import Event
from taekit.tae.event_group import EventGroup
from taekit.tae.groupdata import GroupData16
from taekit.tae.miniheader import Standard

# animation 1000 with two events, one type 16 group and no file name, as DS1
DS1_SCENARIO = struct.pack(
    '<2i7i3iBBBBii3f6i4i3i2i2i',
    # animation header: id, body offset
    1000, 8,
    # body: event count, event headers, group count, groups, times count,
    # times offset, anim file offset
    2, 72, 1, 112, 3, 60, 36,
    # anim file: mini header type, self offset, file name offset
    0, 44, 60,
    # standard mini header, trailing zero offset
    1, 0, 0, 0, 0, 0,
    # times
    0.0, 1.0, 2.0,
    # event headers: start time, end time, data offsets
    60, 64, 96, 64, 68, 104,
    # event data: type, parameter offset
    1, 104, 2, 112,
    # event group header: entry count, values offset, type offset
    2, 132, 124,
    # group type, group data offset
    16, 0,
    # group values
    72, 84,
)


@pytest.fixture
def scenario_animation() -> Animation:
    return Animation(
        1000,
        Standard(is_loop_by_default=True),
        '',
        [Event(1, 0.0, 1.0), Event(2, 1.0, 2.0)],
        [EventGroup(16, [0, 1], GroupData16())],
    )


@pytest.fixture
def ds1_scenario() -> bytes:
    return DS1_SCENARIO
