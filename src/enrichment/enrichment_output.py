"""
JSON serialization of enriched warehouses.

Produces the camelCase shape the slide renderer consumes. Embedded satellite
images are either written to an image directory or inlined as Base64.
"""

import base64
import hashlib
import re
from pathlib import Path
from typing import Any, Dict, Optional

from ..config.logger_module import log_info
from ..geospatial.geo_models import GeoFeature, SatelliteImage
from .enrichment_workflow import EnrichedWarehouse


_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def _feature_dict(feature: Optional[GeoFeature]) -> Optional[Dict[str, Any]]:
    if feature is None:
        return None
    return {"name": feature.name, "distance": feature.distance_km}


def image_filename(warehouse_id: Any, image: SatelliteImage) -> str:
    """
    Build a stable filename such as ``warehouse_42_<hash>.png``.

    The hash is taken over the image bytes, so identical imagery reuses a file.
    Characters outside letters, digits, "_" and "-" in the id become "_", so
    the file always lands directly inside the image directory.
    """
    extension = _EXTENSIONS.get(image.content_type or "", "img")
    digest = hashlib.md5(image.content or b"").hexdigest()[:12]
    safe_id = _UNSAFE_FILENAME_CHARS.sub("_", str(warehouse_id))
    return f"warehouse_{safe_id}_{digest}.{extension}"


def _satellite_dict(warehouse_id: Any,
                    image: Optional[SatelliteImage],
                    images_dir: Optional[Path]) -> Optional[Dict[str, Any]]:
    if image is None:
        return None
    if image.is_deferred:
        return {"url": image.url}

    if images_dir is not None:
        images_dir.mkdir(parents=True, exist_ok=True)
        path = images_dir / image_filename(warehouse_id, image)
        path.write_bytes(image.content)
        log_info("Wrote satellite image", path=str(path), size_bytes=len(image.content))
        return {"path": str(path), "contentType": image.content_type}

    return {
        "base64": base64.b64encode(image.content).decode("ascii"),
        "contentType": image.content_type,
    }


def serialize_enriched_warehouse(enriched: EnrichedWarehouse,
                                 images_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Convert an enriched warehouse to a JSON-ready dictionary.

    The original record columns are kept under their original names, with
    ``geospatial`` and ``validPhotos`` added.

    Args:
        enriched: Enriched warehouse
        images_dir: Directory for embedded images, or None to inline them

    Returns:
        JSON-serializable dictionary
    """
    geo = enriched.geospatial
    output = enriched.record.model_dump(by_alias=True)
    output["geospatial"] = {
        "latitude": geo.latitude,
        "longitude": geo.longitude,
        "nearestAirport": _feature_dict(geo.nearest_airport),
        "nearestHighway": _feature_dict(geo.nearest_highway),
        "nearestRailway": _feature_dict(geo.nearest_railway),
        "satelliteImage": _satellite_dict(enriched.record.id, geo.satellite_image, images_dir),
    }
    output["validPhotos"] = list(enriched.valid_photos)
    return output
