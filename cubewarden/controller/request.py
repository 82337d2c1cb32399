from dataclasses import dataclass

from cubewarden.models import ObjectKey


@dataclass(frozen=True, slots=True)
class Request:
    """One reconcile invocation: an object identity within a kind."""
    kind: str
    key: ObjectKey

    @property
    def name(self) -> str:
        return self.key.name

    @property
    def namespace(self) -> str:
        return self.key.namespace

    def __str__(self) -> str:
        return f"{self.kind}/{self.key}"


@dataclass(frozen=True, slots=True)
class Result:
    """
    Outcome of a successful reconcile.

    Attributes:
        requeue: Queue the request again with the per-key backoff.
        requeue_after: Queue the request again after this many seconds.
    """
    requeue: bool = False
    requeue_after: float = 0.0
