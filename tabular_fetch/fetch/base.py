"""
Backend-agnostic pagination engine.

A fetch instance owns the query state of one datasource (options, cursors,
definition, negotiated features) and the rows of the page currently shown.
Subclasses only know how to get a definition and a single page of data.
"""

import logging
from dataclasses import fields, replace
from typing import Any

from .. import config
from ..core.filters import build_query, run_query, sort_rows
from ..core.models import Datasource, Definition, FeatureFlags, FetchOptions, FetchState, PageResult
from ..core.stores import Writable

logger = logging.getLogger(__name__)

OPTION_NAMES = {option.name for option in fields(FetchOptions)}


class DataFetch:
    """Base class of the fetch engine, one subclass per datasource type."""

    def __init__(
        self,
        api,
        datasource: Datasource,
        limit: int | None = None,
        filter: list[dict] | dict | None = None,
        sort_column: str | None = None,
        sort_order: str = "ascending",
        sort_type: str | None = None,
        paginate: bool = True,
    ):
        self.api = api
        self.options = FetchOptions(
            datasource=datasource,
            limit=config.PAGE_SIZE_DEFAULT if limit is None else limit,
            filter=filter,
            sort_column=sort_column,
            sort_order=sort_order,
            sort_type=sort_type,
            paginate=paginate,
        )
        self.features = FeatureFlags()
        self.store: Writable[FetchState] = Writable(FetchState())

    @property
    def state(self) -> FetchState:
        return self.store.get()

    @property
    def has_prev_page(self) -> bool:
        return self.state.page_number > 0

    def _set_state(self, **changes: Any) -> None:
        self.store.set(replace(self.store.get(), **changes))

    async def get_definition(self, datasource: Datasource) -> Definition | None:
        return None

    def determine_feature_flags(self, definition: Definition | None) -> FeatureFlags:
        return FeatureFlags()

    def get_schema(self, definition: Definition | None) -> dict | None:
        return definition.schema if definition else None

    async def get_data(self) -> PageResult:
        raise NotImplementedError

    async def get_initial_data(self) -> None:
        """Fetch the definition, negotiate features and load the first page."""
        reset_key = self.state.reset_key + 1
        self._set_state(reset_key=reset_key, loading=True)

        definition = await self.get_definition(self.options.datasource)
        if reset_key != self.state.reset_key:
            return
        self.features = self.determine_feature_flags(definition)
        try:
            query = build_query(self.options.filter)
        except ValueError:
            logger.warning(
                "Ignoring fetch with invalid filter %r", self.options.filter, exc_info=True
            )
            query = None

        self._set_state(
            definition=definition,
            schema=self.get_schema(definition),
            query=query,
            page_number=0,
            cursor=None,
            cursors=[],
        )
        page = await self.get_page() if query is not None else PageResult.empty()
        if reset_key != self.state.reset_key:
            return

        paginated = self.options.paginate and self.features.supports_pagination
        self._set_state(
            rows=page.rows,
            info=page.info,
            has_next_page=page.has_next_page,
            cursors=[None, page.cursor] if paginated else [None],
            loading=False,
            loaded=True,
        )

    async def get_page(self) -> PageResult:
        """Get the page at the current cursor, emulating missing backend features."""
        page = await self.get_data()
        rows = page.rows
        query = self.state.query or {}
        if not self.features.supports_search and query:
            rows = run_query(rows, query)
        if not self.features.supports_sort and self.options.sort_column:
            rows = sort_rows(rows, self.options.sort_column, self.options.sort_order)
        if not self.features.supports_pagination and self.options.limit:
            rows = rows[: self.options.limit]
        return replace(page, rows=rows)

    async def next_page(self) -> None:
        state = self.state
        if state.loading or not self.options.paginate or not state.has_next_page:
            return
        self._set_state(
            loading=True,
            cursor=state.cursors[state.page_number + 1],
            page_number=state.page_number + 1,
        )
        await self._load_current_page(state.reset_key)

    async def prev_page(self) -> None:
        state = self.state
        if state.loading or not self.options.paginate or not self.has_prev_page:
            return
        self._set_state(
            loading=True,
            cursor=state.cursors[state.page_number - 1],
            page_number=state.page_number - 1,
        )
        await self._load_current_page(state.reset_key)

    async def refresh(self) -> None:
        """Reload the current page without touching the cursors."""
        state = self.state
        if state.loading:
            return
        self._set_state(loading=True)
        await self._load_current_page(state.reset_key)

    async def _load_current_page(self, reset_key: int) -> None:
        page = await self.get_page()
        # the query was reset while this page was loading
        if reset_key != self.state.reset_key:
            return
        cursors = list(self.state.cursors)
        page_number = self.state.page_number
        if page.has_next_page:
            del cursors[page_number + 1 :]
            cursors.append(page.cursor)
        self._set_state(
            rows=page.rows,
            info=page.info,
            has_next_page=page.has_next_page,
            cursors=cursors,
            loading=False,
        )

    async def update(self, **options: Any) -> bool:
        """
        Update the fetch options and reload from the first page.

        Returns:
            False when no option actually changed, in which case nothing is fetched
        """
        unknown = set(options) - OPTION_NAMES
        if unknown:
            raise TypeError(f"unknown fetch options: {', '.join(sorted(unknown))}")
        changed = {
            key: value for key, value in options.items() if getattr(self.options, key) != value
        }
        if not changed:
            return False
        self.options = replace(self.options, **changed)
        await self.get_initial_data()
        return True
