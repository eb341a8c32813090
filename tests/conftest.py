import re

import aiohttp
import pytest
import pytest_asyncio
from aioresponses import aioresponses

from tabular_fetch import config
from tabular_fetch.core.api import APIClient
from tabular_fetch.core.models import Datasource, DatasourceType, Definition

API_URL = "https://example.com"
AIRTABLE_API_URL = "https://api.airtable.com/v0"
AIRTABLE_BASE = "appBase"
TABLE_ID = "ta_aaaaaaaa1111bbbb2222cccccccccccc"
OTHER_TABLE_ID = "ta_aaaaaaaa5555bbbb6666cccccccccccc"
QUERY_ID = "query_aaaaaaaa1111bbbb2222cccccccccccc"
DATASOURCE_ID = "datasource_aaaaaaaa1111bbbb2222cccccc"

AIRTABLE_TABLE_PATTERN = re.compile(rf"^{re.escape(AIRTABLE_API_URL)}/{AIRTABLE_BASE}/Tasks(\?.*)?$")


@pytest.fixture(autouse=True)
def setup():
    config.override(API_URL=API_URL, AIRTABLE_API_URL=AIRTABLE_API_URL, PAGE_SIZE_DEFAULT=10)


@pytest.fixture
def rmock():
    with aioresponses() as m:
        yield m


@pytest_asyncio.fixture
async def client():
    async with aiohttp.ClientSession() as session:
        yield session


@pytest_asyncio.fixture
async def api(client):
    yield APIClient(client)


@pytest.fixture
def table_datasource():
    return Datasource(type=DatasourceType.TABLE, table_id=TABLE_ID)


@pytest.fixture
def query_datasource():
    return Datasource.from_dict(
        {
            "type": "query",
            "_id": QUERY_ID,
            "parameters": [{"name": "status", "default": "open"}],
            "queryParams": {"owner": "me"},
        }
    )


def make_rows(count: int, start: int = 0) -> list[dict]:
    return [{"_id": f"ro_{i}", "name": f"row {i}", "rank": i} for i in range(start, start + count)]


class FakeAPI:
    """In-memory stand-in for APIClient, recording every call it receives."""

    def __init__(self):
        self.calls: list[tuple[str, tuple, dict]] = []
        self.query_definition: Definition | Exception | None = None
        self.table_definition: Definition | Exception | None = Definition(
            id=TABLE_ID, schema={"name": {"type": "string"}}
        )
        self.datasources: list[dict] = []
        self.query_responses: list[dict | Exception] = []
        self.search_responses: list[dict | Exception] = []
        self.save_row_response: dict | Exception = {"_id": "ro_new"}

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))

    def calls_to(self, name: str) -> list[tuple[tuple, dict]]:
        return [(args, kwargs) for call, args, kwargs in self.calls if call == name]

    @staticmethod
    def _answer(value):
        if isinstance(value, Exception):
            raise value
        return value

    async def fetch_query_definition(self, query_id):
        self._record("fetch_query_definition", query_id)
        return self._answer(self.query_definition)

    async def fetch_table_definition(self, table_id):
        self._record("fetch_table_definition", table_id)
        return self._answer(self.table_definition)

    async def save_table(self, definition):
        self._record("save_table", definition)
        return {"_id": definition.id}

    async def get_datasources(self):
        self._record("get_datasources")
        return self.datasources

    async def get_datasource_source(self, datasource_id):
        self._record("get_datasource_source", datasource_id)
        for datasource in self.datasources:
            if datasource["_id"] == datasource_id:
                return datasource["source"]
        return None

    async def execute_query(self, query_id, parameters, pagination=None):
        self._record("execute_query", query_id, parameters, pagination)
        return self._answer(self.query_responses.pop(0))

    async def search_table(self, table_id, **kwargs):
        self._record("search_table", table_id, **kwargs)
        if not self.search_responses:
            return {"rows": [], "hasNextPage": False}
        return self._answer(self.search_responses.pop(0))

    async def save_row(self, row, suppress_errors=False):
        self._record("save_row", dict(row), suppress_errors)
        return self.save_row_response

    async def delete_rows(self, table_id, rows):
        self._record("delete_rows", table_id, rows)
        return {}


@pytest.fixture
def fake_api():
    return FakeAPI()
