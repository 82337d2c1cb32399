from cubewarden.models import Resource
from cubewarden.models.constants import HNC_INHERITED_LABEL, SYNC_ANNOTATION

_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}


def parse_bool(value: str) -> bool:
    if value in _TRUE_VALUES:
        return True

    if value in _FALSE_VALUES:
        return False

    raise ValueError(f"invalid boolean value: {value!r}")


def is_sync_resource(obj: Resource) -> bool:
    """
    Whether an object is replicated to members.

    Objects opt in with the sync annotation set to a true value. Objects
    spread by namespace-hierarchy inheritance never replicate on their own.
    """
    if HNC_INHERITED_LABEL in obj.labels:
        return False

    value = obj.annotations.get(SYNC_ANNOTATION)
    if value is None:
        return False

    try:
        return parse_bool(value)

    except ValueError:
        return False
