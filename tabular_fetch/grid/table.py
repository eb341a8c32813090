"""
Reactive controller of a grid bound to a table datasource.

The grid state lives in `Writable` stores (datasource, fetch, filter, sort)
owned by the host UI. The controller keeps the active fetch instance in sync
with the filter and sort stores, and exposes the row actions of the grid.
Stores must be set from within the running event loop, since updates of the
fetch are dispatched as tasks.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from ..core.models import Datasource, DatasourceType, Definition, Sort
from ..core.stores import Subscriptions, Writable
from ..fetch import DataFetch

logger = logging.getLogger(__name__)

SUPPRESS_ERRORS = True


class TableController:
    def __init__(
        self,
        api,
        datasource: Writable,
        fetch: Writable,
        filter: Writable,
        sort: Writable,
        definition: Writable | None = None,
        create_fetch: Callable[..., DataFetch] | None = None,
    ):
        self.api = api
        self.datasource = datasource
        self.fetch = fetch
        self.filter = filter
        self.sort = sort
        self.definition = definition if definition is not None else Writable(None)
        self.create_fetch = create_fetch

        # mirror of the active fetch, for the UI
        self.rows: Writable[list[dict]] = Writable([])
        self.has_next_page: Writable[bool] = Writable(False)
        self.loaded: Writable[bool] = Writable(False)

        self._root = Subscriptions()
        # filter and sort subscriptions of the current datasource
        self._subscriptions = Subscriptions()
        self._fetch_state = Subscriptions()
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    @staticmethod
    def is_datasource_valid(datasource: Datasource | None) -> bool:
        return (
            datasource is not None
            and datasource.type == DatasourceType.TABLE
            and datasource.is_valid()
        )

    def initialise(self) -> None:
        self._root.add(self.fetch.subscribe(self._on_fetch_change))
        self._root.add(self.datasource.subscribe(self._on_datasource_change))

    def destroy(self) -> None:
        self._subscriptions.clear()
        self._fetch_state.clear()
        self._root.clear()

    async def wait(self) -> None:
        """Wait until every dispatched fetch update has completed, failures being logged."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_datasource_change(self, datasource: Datasource | None) -> None:
        self._subscriptions.clear()
        if not self.is_datasource_valid(datasource):
            return

        # wipe state
        self.filter.set([])
        self.sort.set(Sort(column=None, order="ascending"))

        if self.create_fetch is not None:
            sort = self.sort.get()
            new_fetch = self.create_fetch(
                self.api,
                datasource,
                filter=self.filter.get(),
                sort_column=sort.column,
                sort_order=sort.order,
            )
            self.fetch.set(new_fetch)
            self._dispatch(datasource, lambda fetch: fetch.get_initial_data())

        self._subscriptions.add(
            self.filter.subscribe(lambda filter: self._on_filter_change(datasource, filter))
        )
        self._subscriptions.add(
            self.sort.subscribe(lambda sort: self._on_sort_change(datasource, sort))
        )

    def _on_filter_change(self, datasource: Datasource, filter: Any) -> None:
        if self._bound_fetch(datasource) is None:
            return
        self._dispatch(datasource, lambda fetch: fetch.update(filter=filter))

    def _on_sort_change(self, datasource: Datasource, sort: Sort) -> None:
        if self._bound_fetch(datasource) is None:
            return
        self._dispatch(
            datasource,
            lambda fetch: fetch.update(
                sort_order=sort.order or "ascending", sort_column=sort.column
            ),
        )

    def _on_fetch_change(self, fetch: DataFetch | None) -> None:
        self._fetch_state.clear()
        if fetch is None:
            self.rows.set([])
            self.has_next_page.set(False)
            self.loaded.set(False)
            return
        self._fetch_state.add(fetch.store.subscribe(self._mirror_fetch_state))

    def _mirror_fetch_state(self, state) -> None:
        self.rows.set(state.rows)
        self.has_next_page.set(state.has_next_page)
        self.loaded.set(state.loaded)

    def _bound_fetch(self, datasource: Datasource) -> DataFetch | None:
        """The active fetch, if it still belongs to the given datasource."""
        fetch = self.fetch.get()
        if fetch is None or fetch.options.datasource.table_id != datasource.table_id:
            return None
        return fetch

    def _dispatch(self, datasource: Datasource, action: Callable[[DataFetch], Awaitable]) -> None:
        task = asyncio.get_running_loop().create_task(self._run(datasource, action))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Fetch update failed", exc_info=exc)

    async def _run(self, datasource: Datasource, action: Callable[[DataFetch], Awaitable]) -> None:
        # one fetch operation at a time, checked again once its turn has come
        async with self._lock:
            fetch = self._bound_fetch(datasource)
            if fetch is None:
                logger.debug("Dropping fetch update of stale table %s", datasource.table_id)
                return
            await action(fetch)

    async def refresh_definition(self) -> None:
        datasource = self.datasource.get()
        if not self.is_datasource_valid(datasource):
            return
        self.definition.set(await self.api.fetch_table_definition(datasource.table_id))

    async def save_definition(self, definition: Definition) -> None:
        await self.api.save_table(definition)

    async def _save_row(self, row: dict) -> Any:
        datasource = self.datasource.get()
        if not self.is_datasource_valid(datasource):
            return None
        row["tableId"] = datasource.table_id
        return await self.api.save_row(row, SUPPRESS_ERRORS)

    async def add_row(self, row: dict) -> Any:
        return await self._save_row(row)

    async def update_row(self, row: dict) -> Any:
        return await self._save_row(row)

    async def delete_rows(self, rows: list[dict]) -> None:
        datasource = self.datasource.get()
        if not self.is_datasource_valid(datasource):
            return
        await self.api.delete_rows(datasource.table_id, rows)

    async def get_row(self, id: str) -> dict | None:
        datasource = self.datasource.get()
        if not self.is_datasource_valid(datasource):
            return None
        res = await self.api.search_table(
            datasource.table_id,
            limit=1,
            query={"equal": {"_id": id}},
            paginate=False,
        )
        rows = (res or {}).get("rows") or []
        return rows[0] if rows else None
