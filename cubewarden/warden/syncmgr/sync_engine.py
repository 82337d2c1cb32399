"""
One-way replication of a single kind from the pivot store to the member store.

Every reconcile re-derives what to do from the two stores:

    pivot absent              -> delete the mirror
    mirror absent             -> create it
    pivot newer than mirror   -> delete the stale mirror, requeue to recreate
    pivot sequence > mirror's -> overwrite the mirror
    otherwise                 -> nothing to do

The sequence number is the pivot resource version, copied into the
tracking annotation of every object written to the member store.
"""

from __future__ import annotations

from enum import Enum

from cubewarden.controller import Request, Result
from cubewarden.logging import Logger
from cubewarden.models import Resource
from cubewarden.models.constants import (
    LAST_APPLIED_CONFIG_ANNOTATION,
    PIVOT_RESOURCE_VERSION_ANNOTATION,
)
from cubewarden.store import ResourceStore, StoreError, is_not_found

from .deletion import delete_local
from .errors import MalformedAnnotationError
from .logging_models import SyncFailure, SyncInfo
from .predicates import is_sync_resource
from .resources import SyncKind


class StalenessCheck(str, Enum):
    """
    How a mirror is recognised as a namesake created out of band.

    PIVOT_VS_LOCAL: the pivot object was created after the mirror.
    DISABLED: compares the pivot creation time with itself, which never
        reports a stale mirror.
    """
    PIVOT_VS_LOCAL = "pivot-vs-local"
    DISABLED = "disabled"


class SyncAction(str, Enum):
    SKIP = "skip"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    REPLACE = "replace"


def trim_object_meta(obj: Resource) -> Resource:
    """Return a copy of a pivot object that is safe to write to a member store."""
    trimmed = obj.copy()
    annotations = trimmed.metadata.annotations

    annotations[PIVOT_RESOURCE_VERSION_ANNOTATION] = obj.metadata.resource_version
    annotations.pop(LAST_APPLIED_CONFIG_ANNOTATION, None)

    trimmed.metadata.resource_version = ""
    trimmed.metadata.uid = ""

    return trimmed


def parse_tracking(obj: Resource) -> int:
    value = obj.annotations.get(PIVOT_RESOURCE_VERSION_ANNOTATION)

    try:
        return int(value)

    except (TypeError, ValueError) as err:
        raise MalformedAnnotationError(
            obj.kind,
            str(obj.key),
            PIVOT_RESOURCE_VERSION_ANNOTATION,
            value,
        ) from err


class SyncEngine:
    """
    Reconciler mirroring one SyncKind from pivot to member.

    Example usage:
        engine = SyncEngine(get_sync_kind("RoleBinding"), pivot_store, local_store)
        action = await engine.sync(Request("RoleBinding", ObjectKey("r1", "ns")))
    """

    def __init__(
        self,
        sync_kind: SyncKind,
        pivot_store: ResourceStore,
        local_store: ResourceStore,
        staleness_check: StalenessCheck = StalenessCheck.PIVOT_VS_LOCAL,
        logger: Logger | None = None,
    ) -> None:
        self.sync_kind = sync_kind
        self.staleness_check = StalenessCheck(staleness_check)

        self._pivot_store = pivot_store
        self._local_store = local_store
        self._logger = logger or Logger()

    async def reconcile(self, request: Request) -> Result:
        action = await self.sync(request)

        # A replaced mirror is recreated on the next pass
        return Result(requeue=action == SyncAction.REPLACE)

    async def sync(self, request: Request) -> SyncAction:
        action = SyncAction.SKIP

        try:
            action = await self._sync(request)

        except Exception as err:
            await self._logger.log(
                SyncFailure(
                    message=f"sync: {action.value} {request.kind}, name: {request.name}, namespace: {request.namespace}, err: {err}",
                    kind=request.kind,
                    namespace=request.namespace,
                    name=request.name,
                    action=action.value,
                )
            )
            raise

        await self._logger.log(
            SyncInfo(
                message=f"sync: {action.value} {request.kind}, name: {request.name}, namespace: {request.namespace}",
                kind=request.kind,
                namespace=request.namespace,
                name=request.name,
                action=action.value,
            )
        )

        return action

    async def _sync(self, request: Request) -> SyncAction:
        kind = self.sync_kind.kind

        try:
            pivot = await self._pivot_store.get(kind, request.key)

        except StoreError as err:
            if not is_not_found(err):
                raise

            await delete_local(self._local_store, self.sync_kind, request.key)
            return SyncAction.DELETE

        if not is_sync_resource(pivot):
            return await self._drop_mirror(request)

        desired = trim_object_meta(pivot)

        try:
            local = await self._local_store.get(kind, request.key)

        except StoreError as err:
            if not is_not_found(err):
                raise

            await self._local_store.create(desired)
            return SyncAction.CREATE

        if self._is_stale(pivot, local):
            await delete_local(self._local_store, self.sync_kind, request.key)
            return SyncAction.REPLACE

        pivot_sequence = parse_tracking(desired)
        local_sequence = parse_tracking(local)

        if pivot_sequence <= local_sequence:
            return SyncAction.SKIP

        desired.metadata.resource_version = local.metadata.resource_version
        desired.metadata.uid = local.metadata.uid

        await self._local_store.update(desired)

        return SyncAction.UPDATE

    async def _drop_mirror(self, request: Request) -> SyncAction:
        # The pivot object left scope; only mirrors written by a sync are removed
        try:
            local = await self._local_store.get(self.sync_kind.kind, request.key)

        except StoreError as err:
            if is_not_found(err):
                return SyncAction.SKIP

            raise

        if PIVOT_RESOURCE_VERSION_ANNOTATION not in local.annotations:
            return SyncAction.SKIP

        await delete_local(self._local_store, self.sync_kind, request.key)

        return SyncAction.DELETE

    def _is_stale(self, pivot: Resource, local: Resource) -> bool:
        pivot_created = pivot.metadata.creation_timestamp

        if self.staleness_check == StalenessCheck.DISABLED:
            reference = pivot.metadata.creation_timestamp
        else:
            reference = local.metadata.creation_timestamp

        if pivot_created is None or reference is None:
            return False

        return pivot_created > reference
