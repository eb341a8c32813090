"""
Data models for the core module.

This module contains the data classes and closed enumerations shared by the
fetch engine, the integrations and the grid controller.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DatasourceType(str, Enum):
    TABLE = "table"
    QUERY = "query"


class SourceName(str, Enum):
    """
    Backend kinds with a dedicated behavior in this package.

    Definitions and datasources keep the kind sent by the server as a plain
    string, since the server knows more kinds than the ones listed here.
    """

    INTERNAL = "INTERNAL"
    AIRTABLE = "AIRTABLE"
    GOOGLE_SHEETS = "GOOGLE_SHEETS"
    MONGODB = "MONGODB"
    MYSQL = "MYSQL"
    POSTGRES = "POSTGRES"
    REST = "REST"


class PaginationType(str, Enum):
    PAGE = "page"
    CURSOR = "cursor"


@dataclass(frozen=True)
class QueryParameter:
    name: str
    default: Any = None


@dataclass(frozen=True)
class Datasource:
    """Represents a reference to a queryable table or saved query."""

    type: DatasourceType
    id: str | None = None
    table_id: str | None = None
    parameters: tuple[QueryParameter, ...] = ()
    query_params: dict[str, Any] = field(default_factory=dict, hash=False)
    fields: dict[str, Any] | None = field(default=None, hash=False)

    def is_valid(self) -> bool:
        return bool(_VALIDATORS[self.type](self))

    @classmethod
    def from_dict(cls, data: dict) -> "Datasource":
        return cls(
            type=DatasourceType(data["type"]),
            id=data.get("_id"),
            table_id=data.get("tableId"),
            parameters=tuple(
                QueryParameter(name=param["name"], default=param.get("default"))
                for param in data.get("parameters") or []
            ),
            query_params=dict(data.get("queryParams") or {}),
            fields=data.get("fields"),
        )


# a datasource is only usable once the identifier its backend needs is set
_VALIDATORS = {
    DatasourceType.TABLE: lambda datasource: datasource.table_id,
    DatasourceType.QUERY: lambda datasource: datasource.id,
}


@dataclass
class PaginationDescriptor:
    type: str | None = None
    location: str | None = None
    page_param: Any = None

    @classmethod
    def from_dict(cls, data: dict | None) -> "PaginationDescriptor":
        data = data or {}
        return cls(
            type=data.get("type"),
            location=data.get("location"),
            page_param=data.get("pageParam"),
        )


@dataclass
class Definition:
    """Schema and capability metadata of a datasource."""

    id: str | None = None
    datasource_id: str | None = None
    fields: dict[str, Any] | None = None
    schema: dict[str, Any] = field(default_factory=dict)
    source: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def pagination(self) -> PaginationDescriptor:
        return PaginationDescriptor.from_dict((self.fields or {}).get("pagination"))

    def copy(self) -> "Definition":
        return copy.deepcopy(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Definition":
        known = {"_id", "datasourceId", "fields", "schema", "source"}
        return cls(
            id=data.get("_id"),
            datasource_id=data.get("datasourceId"),
            fields=data.get("fields"),
            schema=data.get("schema") or {},
            source=data.get("source"),
            extra={key: value for key, value in data.items() if key not in known},
        )


@dataclass
class FeatureFlags:
    supports_search: bool = False
    supports_sort: bool = False
    supports_pagination: bool = False


@dataclass
class Sort:
    column: str | None = None
    order: str = "ascending"


@dataclass
class FetchOptions:
    datasource: Datasource
    limit: int = 10
    # either a list of {"operator", "field", "value"} conditions or a built query
    filter: list[dict] | dict | None = None
    sort_column: str | None = None
    sort_order: str = "ascending"
    sort_type: str | None = None
    paginate: bool = True


@dataclass
class PageResult:
    """Represents one page of rows returned by a backend."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    cursor: Any = None
    has_next_page: bool = False
    info: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "PageResult":
        return cls(rows=[], has_next_page=False)


@dataclass
class FetchState:
    """Query state and materialized page window owned by a fetch instance."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    info: dict[str, Any] = field(default_factory=dict)
    schema: dict[str, Any] | None = None
    definition: Definition | None = None
    loading: bool = False
    loaded: bool = False
    query: dict[str, Any] | None = None
    page_number: int = 0
    cursor: Any = None
    cursors: list[Any] = field(default_factory=list)
    has_next_page: bool = False
    reset_key: int = 0


@dataclass
class PaginationRequest:
    limit: int | None = None
    bookmark: Any = None
    sort: Sort | None = None


@dataclass
class SearchParams:
    filters: dict[str, dict[str, Any]] = field(default_factory=dict)
    pagination: PaginationRequest | None = None


@dataclass
class ConnectionInfo:
    connected: bool
    error: str | None = None
