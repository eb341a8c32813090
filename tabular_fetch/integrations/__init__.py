"""
Registry of the backend integrations, keyed by backend kind.
"""

from types import ModuleType

from ..core.models import SourceName
from . import airtable
from .base import IntegrationBase, IntegrationSchema

DEFINITIONS: dict[SourceName, ModuleType] = {
    SourceName.AIRTABLE: airtable,
}


def _definition(source: SourceName | str) -> ModuleType:
    try:
        return DEFINITIONS[SourceName(source)]
    except ValueError:
        raise KeyError(source) from None


def get_integration(source: SourceName | str) -> type[IntegrationBase]:
    """Get the integration class of a backend kind, KeyError if there is none."""
    return _definition(source).integration


def get_schema(source: SourceName | str) -> IntegrationSchema:
    return _definition(source).SCHEMA


def get_definitions() -> dict[str, IntegrationSchema]:
    return {source.value: module.SCHEMA for source, module in DEFINITIONS.items()}


__all__ = ["DEFINITIONS", "IntegrationBase", "get_definitions", "get_integration", "get_schema"]
