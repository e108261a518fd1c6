"""
Geo helpers for the dive-site map.

Coordinates are GeoJSON order everywhere: [longitude, latitude].
"""

import math

# Same spherical radius MongoDB uses for 2dsphere distance calculations
EARTH_RADIUS_M = 6378100.0


def haversine_m(lng1: float, lat1: float, lng2: float, lat2: float) -> float:
    """Great-circle distance in metres between two lng/lat points."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


def valid_lng_lat(lng: float, lat: float) -> bool:
    return -180 <= lng <= 180 and -90 <= lat <= 90


def near_sphere(lng: float, lat: float, max_distance: float) -> dict:
    """$nearSphere clause for a 2dsphere-indexed GeoJSON field; results come back nearest first."""
    return {
        "$nearSphere": {
            "$geometry": {"type": "Point", "coordinates": [lng, lat]},
            "$maxDistance": max_distance,
        }
    }
