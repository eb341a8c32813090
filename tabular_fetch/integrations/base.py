"""
Contract shared by the backend integrations.

An integration module exposes a `SCHEMA` describing what a host configuration
UI has to ask for (credentials and per-operation query fields), and an
`integration` class implementing `IntegrationBase`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..core.models import ConnectionInfo, PageResult, PaginationRequest, SearchParams


class DatasourceFieldType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    PASSWORD = "password"
    BOOLEAN = "boolean"


class QueryType(str, Enum):
    FIELDS = "fields"
    JSON = "json"
    SQL = "sql"


@dataclass
class FieldSchema:
    type: DatasourceFieldType
    required: bool = False
    default: Any = None
    display: str | None = None


@dataclass
class QuerySchema:
    type: QueryType
    fields: dict[str, FieldSchema] = field(default_factory=dict)
    customisable: bool = False

    @property
    def required_fields(self) -> list[str]:
        return [name for name, spec in self.fields.items() if spec.required]


@dataclass
class IntegrationSchema:
    friendly_name: str
    type: str
    description: str = ""
    docs: str = ""
    custom_plus: bool = False
    relationships: bool = False
    datasource: dict[str, FieldSchema] = field(default_factory=dict)
    query: dict[str, QuerySchema] = field(default_factory=dict)

    def validate_config(self, config: dict) -> list[str]:
        """Return the names of the required credentials missing from a datasource config."""
        return [
            name for name, spec in self.datasource.items() if spec.required and not config.get(name)
        ]


class IntegrationBase(ABC):
    """CRUD and search contract of a backend integration."""

    @abstractmethod
    async def create(self, table: str, json: dict) -> Any:
        ...

    @abstractmethod
    async def read(
        self,
        table: str,
        view: str | None = None,
        num_records: int | None = None,
        sort: list[dict] | None = None,
        filter_by_formula: str | None = None,
        pagination: PaginationRequest | None = None,
    ) -> list[dict]:
        ...

    @abstractmethod
    async def update(self, table: str, id: str, json: dict) -> Any:
        ...

    @abstractmethod
    async def delete(self, table: str, id: str) -> Any:
        ...

    @abstractmethod
    async def search(self, query: dict, params: SearchParams) -> PageResult:
        ...

    @abstractmethod
    async def test_connection(self) -> ConnectionInfo:
        ...
