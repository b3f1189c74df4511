"""
Enrichment module for the warehouse deck generator.

Turns warehouse records into enriched records for the slide renderer:
geospatial context from the geospatial module plus parsed photo URLs.

Main classes:
- EnrichmentOrchestrator: Enrich single locations, records or batches
- WarehouseRecord / EnrichedWarehouse: Input and output records
"""

from .enrichment_output import serialize_enriched_warehouse
from .enrichment_workflow import EnrichedWarehouse, EnrichmentOrchestrator, WarehouseRecord
from .photo_parser import parse_photos

__all__ = [
    "EnrichmentOrchestrator",
    "WarehouseRecord",
    "EnrichedWarehouse",
    "parse_photos",
    "serialize_enriched_warehouse",
]
