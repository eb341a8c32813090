"""
Core module for tabular_fetch.

This module contains the building blocks shared by the fetch engine, the
integrations and the grid controller: models, stores, feature negotiation,
the transport client and exception handling.
"""

from .api import APIClient
from .exceptions import APIException, IntegrationError, handle_exception
from .features import determine_query_features, determine_table_features, enrich_pagination
from .models import (
    ConnectionInfo,
    Datasource,
    DatasourceType,
    Definition,
    FeatureFlags,
    PageResult,
    SearchParams,
    Sort,
    SourceName,
)
from .stores import Subscriptions, Writable

__all__ = [
    "APIClient",
    "APIException",
    "ConnectionInfo",
    "Datasource",
    "DatasourceType",
    "Definition",
    "FeatureFlags",
    "IntegrationError",
    "PageResult",
    "SearchParams",
    "Sort",
    "SourceName",
    "Subscriptions",
    "Writable",
    "determine_query_features",
    "determine_table_features",
    "enrich_pagination",
    "handle_exception",
]
