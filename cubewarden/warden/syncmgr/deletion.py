from cubewarden.models import ObjectKey
from cubewarden.models.constants import FORCE_DELETE_ANNOTATION
from cubewarden.store import ResourceStore, StoreError, is_not_found

from .resources import SyncKind


async def delete_local(
    store: ResourceStore,
    sync_kind: SyncKind,
    key: ObjectKey,
) -> bool:
    """
    Delete a mirror from the member store.

    Protected kinds are stamped with the force-delete annotation first,
    otherwise the member's admission rule rejects the delete.

    Returns:
        True if an object was deleted, False if it was already absent.
    """
    if sync_kind.protected:
        try:
            local = await store.get(sync_kind.kind, key)

        except StoreError as err:
            if is_not_found(err):
                return False

            raise

        if local.annotations.get(FORCE_DELETE_ANNOTATION) != "true":
            local.annotations[FORCE_DELETE_ANNOTATION] = "true"

            try:
                await store.update(local)

            except StoreError as err:
                if is_not_found(err):
                    return False

                raise

    try:
        await store.delete(sync_kind.kind, key)

    except StoreError as err:
        if is_not_found(err):
            return False

        raise

    return True
