# geopulse/services/location_import_service.py
"""
Turns an uploaded GeoJSON document into monitoring locations.
"""

import logging
from typing import List, Dict, Any, Optional, Tuple

from shapely.geometry import shape
from shapely.errors import GeometryTypeError, ShapelyError

from geopulse.core.exceptions import InputValidationError
from geopulse.models.schemas import MonitoringLocation, LocationBounds, LocationImportResponse

logger = logging.getLogger(__name__)

NAME_FIELDS = ("name", "NAME", "Name")


def representative_point(geometry: Dict[str, Any]) -> Optional[Tuple[float, float]]:
    """
    (lng, lat) for a GeoJSON geometry.
    Points use their coordinates, polygons the centroid of the first polygon,
    lines the middle vertex of the first line. Anything else gives None.
    """
    geom = shape(geometry)

    if geom.geom_type == "Point":
        return geom.x, geom.y

    if geom.geom_type in ("Polygon", "MultiPolygon"):
        polygon = geom if geom.geom_type == "Polygon" else geom.geoms[0]
        centroid = polygon.centroid
        return centroid.x, centroid.y

    if geom.geom_type in ("LineString", "MultiLineString"):
        line = geom if geom.geom_type == "LineString" else geom.geoms[0]
        coords = list(line.coords)
        mid = coords[len(coords) // 2]
        return mid[0], mid[1]

    return None


def _features(document: Dict[str, Any]) -> List[Dict[str, Any]]:
    doc_type = document.get("type")
    if doc_type == "FeatureCollection":
        features = document.get("features")
        if not isinstance(features, list):
            raise InputValidationError("FeatureCollection must contain a features array")
        return features
    if doc_type == "Feature":
        return [document]
    raise InputValidationError("GeoJSON must be a FeatureCollection or a Feature")


def import_locations(document: Dict[str, Any]) -> LocationImportResponse:
    """
    Extract one monitoring location per usable feature.

    Raises:
        InputValidationError: If the document is not GeoJSON or holds no usable feature
    """
    if not isinstance(document, dict):
        raise InputValidationError("GeoJSON body must be an object")

    locations: List[MonitoringLocation] = []
    properties: List[Dict[str, Any]] = []

    for index, feature in enumerate(_features(document)):
        if not isinstance(feature, dict) or not feature.get("geometry"):
            continue

        try:
            point = representative_point(feature["geometry"])
        except (GeometryTypeError, ShapelyError, ValueError, KeyError, TypeError, IndexError) as e:
            logger.info(f"Skipping feature {index}: unreadable geometry ({e})")
            continue
        if point is None:
            continue

        lng, lat = point
        props = feature.get("properties") or {}
        name = next((str(props[f]) for f in NAME_FIELDS if props.get(f)), f"Feature {index + 1}")

        try:
            locations.append(MonitoringLocation(name=name, lat=lat, lng=lng))
        except ValueError as e:
            logger.info(f"Skipping feature {index}: coordinates out of range ({e})")
            continue
        properties.append(props)

    if not locations:
        raise InputValidationError("No point, line or polygon features found")

    bounds = LocationBounds(
        minLat=min(loc.lat for loc in locations),
        maxLat=max(loc.lat for loc in locations),
        minLng=min(loc.lng for loc in locations),
        maxLng=max(loc.lng for loc in locations),
    )

    logger.info(f"Imported {len(locations)} location(s) from GeoJSON")
    return LocationImportResponse(locations=locations, properties=properties, bounds=bounds)
