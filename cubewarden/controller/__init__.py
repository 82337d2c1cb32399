from .controller import (
    Controller as Controller,
    ReconcileFunc as ReconcileFunc,
)
from .predicates import EventPredicate as EventPredicate
from .request import (
    Request as Request,
    Result as Result,
)
from .work_queue import WorkQueue as WorkQueue
