"""
Fetch engine for tabular_fetch.

`fetch_data` builds the fetch instance matching the type of a datasource.
"""

from ..core.models import Datasource, DatasourceType
from .base import DataFetch
from .query import QueryFetch
from .table import TableFetch

DATA_FETCH_MAP: dict[DatasourceType, type[DataFetch]] = {
    DatasourceType.TABLE: TableFetch,
    DatasourceType.QUERY: QueryFetch,
}


def fetch_data(api, datasource: Datasource, **options) -> DataFetch:
    """Create the fetch instance for a datasource, options as accepted by DataFetch."""
    return DATA_FETCH_MAP[datasource.type](api, datasource, **options)


__all__ = ["DATA_FETCH_MAP", "DataFetch", "QueryFetch", "TableFetch", "fetch_data"]
