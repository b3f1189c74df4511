#!/usr/bin/env python3
"""
Warehouse Deck Generator - Geospatial Enrichment Script

Reads warehouse records from a JSON file, enriches each one with
coordinates, nearest airport/highway/railway station and satellite imagery,
and writes the enriched records for the slide renderer.

Usage:
    python main_enrich.py warehouses.json enriched.json [options]

Options:
    --images-dir PATH        Write satellite images here instead of inlining them
    --satellite-mode MODE    'embed' (image bytes) or 'reference' (URL)
    --env-file PATH          Configuration file (default: .env)
    --log-level LEVEL        Logging level (default: INFO)
    --log-file PATH          Log file (default: logs/app.log)
    --dry-run                Process without saving output
"""

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, List

from src.config.config_module import ConfigError, load_config
from src.config.logger_module import initialize_logger, log_error, log_info
from src.enrichment.enrichment_output import serialize_enriched_warehouse
from src.enrichment.enrichment_workflow import EnrichedWarehouse, EnrichmentOrchestrator
from src.geospatial.geo_config import GeoConfig


def load_warehouses(input_path: Path) -> List[Dict[str, Any]]:
    """
    Load a JSON array of warehouse records.

    Raises:
        ValueError: If the file is not a JSON array
    """
    data = json.loads(input_path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError("Input file must contain a JSON array of warehouse records")
    return data


def print_summary(enriched: List[EnrichedWarehouse], stats: Dict[str, Any], elapsed: float) -> None:
    """Print a processing summary."""
    located = sum(1 for e in enriched if e.geospatial.coordinates is not None)
    imagery = sum(1 for e in enriched if e.geospatial.satellite_image is not None)
    cache_stats = stats["cache"]

    print("\n" + "=" * 60)
    print("Enrichment Summary")
    print("=" * 60)
    print(f"  - Warehouses enriched: {len(enriched):,}")
    print(f"  - With coordinates: {located:,}")
    print(f"  - With satellite imagery: {imagery:,}")
    print(f"  - Cache hits/misses: {cache_stats['hits']:,}/{cache_stats['misses']:,}")
    print(f"  - Processing time: {elapsed:.1f} seconds")
    print("=" * 60)


def parse_arguments(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Warehouse Deck Generator - Enrich warehouse records with geospatial data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s warehouses.json enriched.json
  %(prog)s warehouses.json enriched.json --images-dir ./satellite
  %(prog)s warehouses.json enriched.json --satellite-mode reference
  %(prog)s warehouses.json enriched.json --dry-run --log-level DEBUG
        """
    )

    parser.add_argument('input', help='Input JSON file with warehouse records')
    parser.add_argument('output', help='Output JSON file for enriched records')

    parser.add_argument('--images-dir', type=str,
                        help='Directory for satellite images (default: inline Base64)')

    parser.add_argument('--satellite-mode', choices=['embed', 'reference'],
                        default='embed',
                        help='Satellite imagery as bytes or as a URL (default: embed)')

    parser.add_argument('--env-file', type=str, default='.env',
                        help='Configuration file (default: .env)')

    parser.add_argument('--log-level',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default='INFO',
                        help='Logging level (default: INFO)')

    parser.add_argument('--log-file', type=str, default='logs/app.log',
                        help='Log file path (default: logs/app.log)')

    parser.add_argument('--dry-run', action='store_true',
                        help='Process without saving output')

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point for geospatial enrichment."""
    args = parse_arguments(argv)

    initialize_logger(log_level=args.log_level, log_file=args.log_file)
    load_config(args.env_file)

    try:
        config = GeoConfig.from_env()
    except (ConfigError, ValueError) as e:
        print(f"\nConfiguration Error: {e}")
        return 1

    if not config.has_google_credentials:
        print("\nGOOGLE_MAPS_API_KEY is not set: place-name geocoding and "
              "satellite imagery will be skipped.")

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"\nInput file not found: {args.input}")
        return 1

    try:
        warehouses = load_warehouses(input_path)
    except ValueError as e:
        log_error("Failed to read warehouse records", path=str(input_path), error=str(e))
        print(f"\nInvalid input file: {e}")
        return 1

    log_info(f"Loaded {len(warehouses)} warehouse records from {input_path}")
    start = time.time()

    with EnrichmentOrchestrator(config=config, satellite_mode=args.satellite_mode) as orchestrator:
        enriched = orchestrator.enrich_warehouses(warehouses)
        stats = orchestrator.get_stats()

    images_dir = Path(args.images_dir) if args.images_dir and not args.dry_run else None
    output = [serialize_enriched_warehouse(e, images_dir) for e in enriched]

    if args.dry_run:
        print("\nDRY RUN MODE - No output saved")
    else:
        Path(args.output).write_text(json.dumps(output, indent=2, default=str), encoding="utf-8")
        print(f"\nEnriched records saved to: {args.output}")

    print_summary(enriched, stats, time.time() - start)
    return 0


if __name__ == "__main__":
    sys.exit(main())
