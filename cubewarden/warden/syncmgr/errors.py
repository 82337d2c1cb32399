class SyncError(Exception):
    """Base class for replication failures."""


class MalformedAnnotationError(SyncError):
    """A tracking annotation does not hold an integer sequence number."""

    def __init__(self, kind: str, key: str, annotation: str, value: str | None) -> None:
        self.kind = kind
        self.key = key
        self.annotation = annotation
        self.value = value

        super().__init__(
            f"{kind} {key}: annotation {annotation} must be an integer, got {value!r}"
        )


class UnsupportedKindError(SyncError):
    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"unsupported sync resource: {kind}")
