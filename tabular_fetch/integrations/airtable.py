"""
Airtable integration.

Airtable is a spreadsheet-database hybrid reached through its REST API. Its
list endpoint pages with an opaque `offset` that cannot be addressed
directly, so reads scan every matching record and slice the requested page
out of them.
"""

import logging
import time
from typing import Any
from urllib.parse import quote

import aiohttp

from .. import config
from ..core.exceptions import IntegrationError, capture_exception
from ..core.filters import normalize_sort_order
from ..core.models import ConnectionInfo, PageResult, PaginationRequest, SearchParams
from .base import (
    DatasourceFieldType,
    FieldSchema,
    IntegrationBase,
    IntegrationSchema,
    QuerySchema,
    QueryType,
)

logger = logging.getLogger(__name__)

SCHEMA = IntegrationSchema(
    docs="https://airtable.com/api",
    description=(
        "Airtable is a spreadsheet-database hybrid, with the features of a database "
        "but applied to a spreadsheet."
    ),
    friendly_name="Airtable",
    type="Spreadsheet",
    custom_plus=True,
    relationships=False,
    datasource={
        "apiKey": FieldSchema(
            type=DatasourceFieldType.PASSWORD, default="enter api key", required=True
        ),
        "base": FieldSchema(type=DatasourceFieldType.STRING, default="mybase", required=True),
    },
    query={
        "create": QuerySchema(
            type=QueryType.FIELDS,
            customisable=True,
            fields={"table": FieldSchema(type=DatasourceFieldType.STRING, required=True)},
        ),
        "read": QuerySchema(
            type=QueryType.FIELDS,
            fields={
                "table": FieldSchema(type=DatasourceFieldType.STRING, required=True),
                "view": FieldSchema(type=DatasourceFieldType.STRING, required=True),
                "numRecords": FieldSchema(type=DatasourceFieldType.NUMBER, default=10),
            },
        ),
        "update": QuerySchema(
            type=QueryType.FIELDS,
            customisable=True,
            fields={
                "id": FieldSchema(
                    type=DatasourceFieldType.STRING, required=True, display="Record ID"
                ),
                "table": FieldSchema(type=DatasourceFieldType.STRING, required=True),
            },
        ),
        "delete": QuerySchema(
            type=QueryType.FIELDS,
            fields={
                "id": FieldSchema(
                    type=DatasourceFieldType.STRING, required=True, display="Record ID"
                ),
                "table": FieldSchema(type=DatasourceFieldType.STRING, required=True),
            },
        ),
    },
)


def format_formula_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def build_filter_formula(equal: dict[str, Any] | None) -> str:
    """
    Build an Airtable formula out of equality filters.

    A single condition is sent as is, several are wrapped in `AND(...)`.
    """
    conditions = [f"{key}='{format_formula_value(value)}'" for key, value in (equal or {}).items()]
    if len(conditions) > 1:
        return f"AND({','.join(conditions)})"
    return "".join(conditions)


def _error_message(body: Any, status: int) -> tuple[str, str | None]:
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or error.get("type") or str(status), error.get("type")
    if isinstance(error, str):
        return error, error
    return f"Airtable request failed with status {status}", None


class AirtableIntegration(IntegrationBase):
    def __init__(self, config: dict, session: aiohttp.ClientSession | None = None):
        self.config = config
        self.session = session
        self.base_url = f"{_api_url()}/{quote(config['base'], safe='')}"
        self.headers = {"Authorization": f"Bearer {config['apiKey']}"}

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        own = self.session is None
        session = aiohttp.ClientSession() if own else self.session
        try:
            async with session.request(
                method,
                f"{self.base_url}{path}",
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=config.REQUEST_TIMEOUT),
                **kwargs,
            ) as res:
                try:
                    body = await res.json(content_type=None)
                except ValueError:
                    body = None
                if not res.ok:
                    message, error_type = _error_message(body, res.status)
                    raise IntegrationError(message, status=res.status, error_type=error_type)
                return body
        finally:
            if own:
                await session.close()

    async def test_connection(self) -> ConnectionInfo:
        mock_table = str(int(time.time() * 1000))
        try:
            await self._request("GET", f"/{mock_table}")
            return ConnectionInfo(connected=True)
        except Exception as e:
            message = getattr(e, "message", None) or str(e)
            if message == f"Could not find table {mock_table} in application {self.config['base']}":
                # the request made it to the application, so the credentials are valid
                return ConnectionInfo(connected=True)
            return ConnectionInfo(connected=False, error=message)

    async def create(self, table: str, json: dict) -> list[dict]:
        try:
            body = await self._request(
                "POST", f"/{quote(table, safe='')}", json={"records": [{"fields": json}]}
            )
            return body["records"]
        except Exception as e:
            logger.exception("Error writing to airtable table %s", table)
            capture_exception(e, integration="airtable", table=table, operation="create")
            raise

    async def read(
        self,
        table: str,
        view: str | None = None,
        num_records: int | None = None,
        sort: list[dict] | None = None,
        filter_by_formula: str | None = None,
        pagination: PaginationRequest | None = None,
    ) -> list[dict]:
        params: list[tuple[str, str]] = [
            ("maxRecords", str(num_records or config.AIRTABLE_MAX_RECORDS)),
            ("pageSize", str(config.AIRTABLE_PAGE_SIZE)),
        ]
        if view:
            params.append(("view", view))
        for i, directive in enumerate(sort or []):
            params.append((f"sort[{i}][field]", directive["field"]))
            params.append((f"sort[{i}][direction]", directive["direction"]))
        if filter_by_formula:
            params.append(("filterByFormula", filter_by_formula))

        try:
            records: list[dict] = []
            offset = None
            # follow every continuation, the requested page is sliced out afterwards
            while True:
                page_params = params + [("offset", offset)] if offset else params
                body = await self._request("GET", f"/{quote(table, safe='')}", params=page_params)
                records.extend(body.get("records") or [])
                offset = body.get("offset")
                if not offset:
                    break

            page, limit = page_window(pagination)
            offset = page * limit - limit
            return [record.get("fields", {}) for record in records][offset : limit * page]
        except Exception:
            logger.exception("Error reading from airtable table %s", table)
            return []

    async def update(self, table: str, id: str, json: dict) -> list[dict]:
        try:
            body = await self._request(
                "PATCH",
                f"/{quote(table, safe='')}",
                json={"records": [{"id": id, "fields": json}]},
            )
            return body["records"]
        except Exception as e:
            logger.exception("Error writing to airtable table %s", table)
            capture_exception(e, integration="airtable", table=table, operation="update")
            raise

    async def delete(self, table: str, id: str) -> dict:
        try:
            return await self._request(
                "DELETE", f"/{quote(table, safe='')}/{quote(id, safe='')}"
            )
        except Exception as e:
            logger.exception("Error writing to airtable table %s", table)
            capture_exception(e, integration="airtable", table=table, operation="delete")
            raise

    async def search(self, query: dict, params: SearchParams) -> PageResult:
        """
        Translate generic search params into an Airtable read.

        Args:
            query: The saved read query (`table`, `view`, `numRecords`)
            params: Equality filters, sort and pagination requested by the caller

        Returns:
            The requested page, with the number of the following page as cursor
            when it is full
        """
        sort = None
        sort_spec = params.pagination.sort if params.pagination else None
        sort_order = normalize_sort_order(sort_spec.order) if sort_spec else None
        if sort_order and sort_spec.column:
            sort = [{"field": sort_spec.column, "direction": sort_order}]

        filter_by_formula = build_filter_formula(params.filters.get("equal"))
        page, limit = page_window(params.pagination)

        rows = await self.read(
            table=query["table"],
            view=query.get("view"),
            num_records=query.get("numRecords"),
            sort=sort or query.get("sort"),
            filter_by_formula=filter_by_formula or query.get("filterByFormula"),
            pagination=params.pagination,
        )
        has_next_page = len(rows) == limit and limit > 0
        return PageResult(
            rows=rows, cursor=page + 1 if has_next_page else None, has_next_page=has_next_page
        )


def page_window(pagination: PaginationRequest | None) -> tuple[int, int]:
    """Page number and page size of a request, the bookmark being a 1-based page number."""
    bookmark = pagination.bookmark if pagination and pagination.bookmark is not None else 1
    limit = (pagination.limit if pagination else None) or config.AIRTABLE_PAGE_SIZE
    return max(int(bookmark), 1), limit


def _api_url() -> str:
    return str(config.AIRTABLE_API_URL).rstrip("/")


integration = AirtableIntegration
