from __future__ import annotations

from collections.abc import Awaitable, Callable

from pydantic import BaseModel

from .index_by_filter_task import index_by_filter_task
from .index_range_task import index_range_task
from .indexing_status_task import indexing_status_task

TaskFn = Callable[..., Awaitable[BaseModel]]

TASKS: dict[str, TaskFn] = {
    "index_range_task": index_range_task,
    "index_by_filter_task": index_by_filter_task,
    "indexing_status_task": indexing_status_task,
}
