"""
Campus checks: student ID barcode format and whether a point lies on campus.
"""

import re

from pydantic import BaseModel, Field

# a 9, followed by 9 digits, followed by a 0
BARCODE_NUMBER_REGEX = re.compile(r"9[0-9]{9}0")


class LatLongBounds(BaseModel):
    lat1: float
    lat2: float
    long1: float
    long2: float


class GeoPoint(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


# University of Wisconsin-Madison
MADISON_CAMPUS_BOUNDS = LatLongBounds(
    lat1=43.06287379628286,
    lat2=43.07860429818014,
    long1=-89.44083184696541,
    long2=-89.37878605972091,
)


def is_campus_id_properly_formatted(campus_id: str) -> bool:
    return bool(campus_id) and BARCODE_NUMBER_REGEX.search(campus_id) is not None


def is_point_within_bounds(point: GeoPoint, bounds: LatLongBounds = MADISON_CAMPUS_BOUNDS) -> bool:
    return (bounds.lat1 <= point.latitude <= bounds.lat2
            and bounds.long1 <= point.longitude <= bounds.long2)
