import dataclasses
import io
import sys
from collections.abc import Iterator
from typing import IO, Any

from taekit.tae.animation import Animation


def _attribs(obj: Any) -> str:
    fields = dataclasses.asdict(obj) if dataclasses.is_dataclass(obj) else {}
    return ''.join(
        f' {key}="{_format(value)}"'
        for key, value in fields.items()
        if value is not None and not isinstance(value, list | dict)
    )


def _format(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.hex()
    return value


def _lines(animation: Animation) -> Iterator[tuple[int, str]]:
    yield 0, f'<ANIM id="{animation.id}" file_name="{animation.file_name}">'
    header = animation.mini_header
    yield 1, f'<{type(header).__name__}{_attribs(header)} />'
    for idx, evt in enumerate(animation.events):
        yield 1, f'<EVNT index="{idx}"{_attribs(evt)} />'
    for group in animation.event_groups:
        indices = ','.join(map(str, group.indices))
        if group.group_data is None:
            yield 1, f'<GRUP group_type="{group.group_type}" indices="{indices}" />'
            continue
        yield 1, f'<GRUP group_type="{group.group_type}" indices="{indices}">'
        data = group.group_data
        yield 2, f'<{type(data).__name__}{_attribs(data)} />'
        yield 1, '</GRUP>'
    yield 0, '</ANIM>'


def render(
    animation: Animation,
    level: int = 0,
    stream: IO[str] = sys.stdout,
) -> None:
    for depth, line in _lines(animation):
        indent = '    ' * (level + depth)
        print(f'{indent}{line}', file=stream)


def renders(animation: Animation) -> str:
    with io.StringIO() as stream:
        render(animation, stream=stream)
        return stream.getvalue()
