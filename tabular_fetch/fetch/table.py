import logging

from ..core.features import determine_table_features
from ..core.models import Datasource, Definition, FeatureFlags, PageResult
from .base import DataFetch

logger = logging.getLogger(__name__)


class TableFetch(DataFetch):
    """Fetches the rows of an internal table, searched, sorted and paginated server side."""

    def determine_feature_flags(self, definition: Definition | None) -> FeatureFlags:
        return determine_table_features(definition)

    async def get_definition(self, datasource: Datasource) -> Definition | None:
        if not datasource.table_id:
            return None
        try:
            return await self.api.fetch_table_definition(datasource.table_id)
        except Exception:
            logger.debug(
                "Could not fetch definition of table %s", datasource.table_id, exc_info=True
            )
            return None

    async def get_data(self) -> PageResult:
        table_id = self.options.datasource.table_id
        try:
            res = await self.api.search_table(
                table_id,
                query=self.state.query,
                limit=self.options.limit,
                bookmark=self.state.cursor,
                paginate=self.options.paginate,
                sort=self.options.sort_column,
                sort_order=self.options.sort_order.lower() if self.options.sort_order else None,
                sort_type=self.options.sort_type,
            )
            if not isinstance(res, dict):
                raise TypeError(f"unexpected search response: {res!r:.100}")
            info = dict(res)
            rows = info.pop("rows", None) or []
            cursor = info.pop("bookmark", None)
            has_next_page = bool(info.pop("hasNextPage", False))
            return PageResult(rows=rows, cursor=cursor, has_next_page=has_next_page, info=info)
        except Exception:
            logger.debug(
                "Search of table %s failed, returning an empty page", table_id, exc_info=True
            )
            return PageResult.empty()
