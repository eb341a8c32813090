"""
Transport client for the core module.

This module talks to the app server holding the datasource definitions, the
saved queries and the table rows. Every method maps to one HTTP request.
"""

import logging
from typing import Any

from aiohttp import ClientResponse, ClientSession, ClientTimeout

from .. import config
from .exceptions import APIException, handle_exception
from .models import Definition

logger = logging.getLogger(__name__)


class APIClient:
    """Handles requests to the app server for definitions, queries and rows."""

    def __init__(self, session: ClientSession, base_url: str | None = None):
        self.session = session
        self.base_url = (base_url or config.API_URL).rstrip("/")
        self.timeout = ClientTimeout(total=config.REQUEST_TIMEOUT)

    async def _request(
        self, method: str, path: str, resource_id: str | None = None, **kwargs
    ) -> Any:
        url = f"{self.base_url}{path}"
        async with self.session.request(method, url, timeout=self.timeout, **kwargs) as res:
            body = await _read_body(res)
            if not res.ok:
                logger.debug("%s %s failed with status %s", method, url, res.status)
                handle_exception(res.status, "Request error", body, resource_id)
            return body

    async def fetch_query_definition(self, query_id: str) -> Definition:
        """
        Get the definition of a saved query.

        Args:
            query_id: The ID of the query

        Returns:
            The query definition

        Raises:
            APIException: If the app server answers with an error
        """
        record = await self._request("GET", f"/api/queries/{query_id}", query_id)
        return Definition.from_dict(record)

    async def fetch_table_definition(self, table_id: str) -> Definition:
        record = await self._request("GET", f"/api/tables/{table_id}", table_id)
        return Definition.from_dict(record)

    async def save_table(self, definition: Definition) -> dict:
        payload = {
            **definition.extra,
            "_id": definition.id,
            "schema": definition.schema,
        }
        return await self._request("POST", "/api/tables", definition.id, json=payload)

    async def get_datasources(self) -> list[dict]:
        """Get every configured datasource, as `{"_id", "source", ...}` records."""
        return await self._request("GET", "/api/datasources")

    async def get_datasource_source(self, datasource_id: str | None) -> str | None:
        """Backend kind of a datasource, as sent by the server (`"MONGODB"`, `"ORACLE"`...)."""
        datasources = await self.get_datasources()
        for datasource in datasources:
            if datasource.get("_id") == datasource_id and datasource.get("source"):
                return datasource["source"]
        return None

    async def execute_query(
        self, query_id: str, parameters: dict, pagination: dict | None = None
    ) -> dict:
        """
        Execute a saved query.

        Args:
            query_id: The ID of the query
            parameters: Values of the query parameters
            pagination: `{"page", "limit"}` to request a single page

        Returns:
            Dictionary with the rows under `data`, an optional `pagination`
            block and any extra metadata returned by the query
        """
        payload: dict[str, Any] = {"parameters": parameters}
        if pagination is not None:
            payload["pagination"] = pagination
        return await self._request("POST", f"/api/v2/queries/{query_id}", query_id, json=payload)

    async def save_row(self, row: dict, suppress_errors: bool = False) -> dict | APIException:
        """
        Create or update a row, depending on whether it carries an `_id`.

        With `suppress_errors`, a failure is returned instead of raised.
        """
        table_id = row.get("tableId")
        try:
            return await self._request("POST", f"/api/{table_id}/rows", table_id, json=row)
        except APIException as e:
            if not suppress_errors:
                raise
            return e

    async def delete_rows(self, table_id: str, rows: list[dict]) -> dict:
        return await self._request(
            "DELETE", f"/api/{table_id}/rows", table_id, json={"rows": rows}
        )

    async def search_table(
        self,
        table_id: str,
        query: dict | None = None,
        limit: int | None = None,
        bookmark: Any = None,
        paginate: bool = True,
        sort: str | None = None,
        sort_order: str | None = None,
        sort_type: str | None = None,
    ) -> dict:
        """
        Search the rows of a table.

        Returns:
            Dictionary with `rows` and, when paginated, `bookmark` and `hasNextPage`
        """
        payload: dict[str, Any] = {"query": query or {}, "paginate": paginate}
        optional = {
            "limit": limit,
            "bookmark": bookmark,
            "sort": sort,
            "sortOrder": sort_order,
            "sortType": sort_type,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return await self._request("POST", f"/api/{table_id}/search", table_id, json=payload)


async def _read_body(res: ClientResponse) -> Any:
    if res.content_type == "application/json":
        return await res.json()
    return await res.text()
