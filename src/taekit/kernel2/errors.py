class MalformedInputError(ValueError):
    def __init__(self, message: str, offset: int | None = None) -> None:
        if offset is not None:
            message = f'{message} (at 0x{offset:X})'
        super().__init__(message)
        self.offset = offset


class AssertionMismatchError(MalformedInputError):
    def __init__(self, expected: int, actual: int, offset: int) -> None:
        super().__init__(f'expected {expected} but got {actual}', offset)
        self.expected = expected
        self.actual = actual


class ReservationError(RuntimeError):
    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key
