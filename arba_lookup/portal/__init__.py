"""Browser automation against the CartoArba portal."""

from arba_lookup.portal.lookup import LookupStage, lookup_parcels

__all__ = ["LookupStage", "lookup_parcels"]
