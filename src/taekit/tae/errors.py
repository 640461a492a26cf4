class UnsupportedVariantError(ValueError):
    def __init__(self, kind: str, tag: int) -> None:
        super().__init__(f'{kind} type {tag} is not supported')
        self.kind = kind
        self.tag = tag


class DanglingReferenceError(LookupError):
    def __init__(self, message: str, reference: int) -> None:
        super().__init__(message)
        self.reference = reference


class GroupDataTypeMismatchError(ValueError):
    def __init__(self, group_type: int, data_type: int) -> None:
        super().__init__(
            f'event group data is for group type {data_type}'
            f' but is attached to group type {group_type}'
        )
        self.group_type = group_type
        self.data_type = data_type
