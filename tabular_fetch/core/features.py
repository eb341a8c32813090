"""
Feature negotiation.

Derives from a datasource definition which generic capabilities its backend
supports natively, so that the fetch engine can fall back to client-side
filtering, sorting and slicing for the others.
"""

from .models import Definition, FeatureFlags, SourceName

# backends whose definitions come back without a pagination descriptor,
# although their queries are paginated by page number
SOURCES_REQUIRING_PAGINATION = {SourceName.MONGODB.value}


def determine_query_features(definition: Definition | None) -> FeatureFlags:
    pagination = definition.pagination if definition else None
    supports_pagination = bool(
        pagination and pagination.type and pagination.location and pagination.page_param
    )
    return FeatureFlags(supports_pagination=supports_pagination)


def determine_table_features(definition: Definition | None) -> FeatureFlags:
    return FeatureFlags(supports_search=True, supports_sort=True, supports_pagination=True)


def enrich_pagination(
    definition: Definition, source: str | None, limit: int, paginate: bool
) -> Definition:
    """
    Synthesize a page pagination descriptor for backends that need one.

    Args:
        definition: The definition as returned by the definition service
        source: Backend kind of the datasource the definition belongs to
        limit: Page size configured by the caller
        paginate: Whether the caller asked for pagination at all

    Returns:
        The same definition when nothing has to be added, an enriched copy otherwise
    """
    if not paginate or source not in SOURCES_REQUIRING_PAGINATION:
        return definition
    enriched = definition.copy()
    enriched.fields = dict(enriched.fields or {})
    enriched.fields["pagination"] = {
        "type": "page",
        "location": "query",
        "pageParam": {"limit": limit},
    }
    return enriched
