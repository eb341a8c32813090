import copy
import logging

from ..core.features import determine_query_features, enrich_pagination
from ..core.models import Datasource, Definition, FeatureFlags, PageResult, PaginationType
from .base import DataFetch

logger = logging.getLogger(__name__)


class QueryFetch(DataFetch):
    """Fetches the rows of a saved query, paginated when its definition allows it."""

    def determine_feature_flags(self, definition: Definition | None) -> FeatureFlags:
        return determine_query_features(definition)

    async def get_definition(self, datasource: Datasource) -> Definition | None:
        if not datasource.id:
            return None
        try:
            definition = await self.api.fetch_query_definition(datasource.id)
            # the definition service strips the query fields, but pagination lives there
            if not definition.fields:
                definition.fields = copy.deepcopy(datasource.fields)
            return await self.enrich_pagination(definition)
        except Exception:
            logger.debug("Could not fetch definition of query %s", datasource.id, exc_info=True)
            return None

    async def enrich_pagination(self, definition: Definition) -> Definition:
        if not self.options.paginate:
            return definition
        source = await self.api.get_datasource_source(definition.datasource_id)
        return enrich_pagination(definition, source, self.options.limit, self.options.paginate)

    def build_parameters(self) -> dict:
        datasource = self.options.datasource
        parameters = copy.deepcopy(datasource.query_params or {})
        for param in datasource.parameters:
            if parameters.get(param.name) in (None, ""):
                parameters[param.name] = param.default
        return parameters

    async def get_data(self) -> PageResult:
        datasource = self.options.datasource
        limit = self.options.limit
        paginate = self.options.paginate and self.features.supports_pagination
        definition = self.state.definition
        pagination_type = definition.pagination.type if definition else None
        cursor = self.state.cursor

        pagination = None
        if paginate:
            request_cursor = int(cursor or 1) if pagination_type == PaginationType.PAGE else cursor
            pagination = {"page": request_cursor, "limit": limit}

        try:
            res = await self.api.execute_query(datasource.id, self.build_parameters(), pagination)
            if not isinstance(res, dict):
                raise TypeError(f"unexpected query response: {res!r:.100}")
            info = dict(res)
            rows = info.pop("data", None) or []
            response_pagination = info.pop("pagination", None) or {}
            return self.normalize(rows, response_pagination, info, pagination)
        except Exception:
            logger.debug("Query %s failed, returning an empty page", datasource.id, exc_info=True)
            return PageResult.empty()

    def normalize(
        self, rows: list, response_pagination: dict, info: dict, pagination: dict | None
    ) -> PageResult:
        """Derive the next cursor of a query response from the pagination kind of the query."""
        definition = self.state.definition
        pagination_type = definition.pagination.type if definition else None
        limit = self.options.limit

        next_cursor = None
        has_next_page = False
        if pagination is not None:
            if pagination_type == PaginationType.PAGE:
                # page numbers only go forward, the heuristic may cost one empty page
                next_cursor = pagination["page"] + 1
                has_next_page = len(rows) == limit and limit > 0
            else:
                next_cursor = response_pagination.get("cursor")
                has_next_page = next_cursor not in (None, "")

        return PageResult(rows=rows, cursor=next_cursor, has_next_page=has_next_page, info=info)
