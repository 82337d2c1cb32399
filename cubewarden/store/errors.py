from cubewarden.models import ObjectKey


class StoreError(Exception):
    """Base class for declarative store failures."""

    def __init__(
        self,
        kind: str,
        key: ObjectKey | None = None,
        message: str | None = None,
    ) -> None:
        self.kind = kind
        self.key = key

        if message is None:
            message = self.__class__.__name__

        super().__init__(
            f"{kind} {key}: {message}" if key else f"{kind}: {message}"
        )


class NotFoundError(StoreError):
    pass


class AlreadyExistsError(StoreError):
    pass


class ConflictError(StoreError):
    """The write carried a stale resource version."""


class InvalidObjectError(StoreError):
    pass


def is_not_found(err: BaseException) -> bool:
    return isinstance(err, NotFoundError)


def is_already_exists(err: BaseException) -> bool:
    return isinstance(err, AlreadyExistsError)


def is_conflict(err: BaseException) -> bool:
    return isinstance(err, ConflictError)
