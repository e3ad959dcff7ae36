"""
Trip history helpers.

Pure functions over lists of trips, used by the driver history view and
the admin driver/vehicle detail views. A trip belongs to the month of its
start time, or of its creation time if it was never started.
"""

import re
from collections import OrderedDict
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from fleetdash.app.models.enums import TripStatus

ALL_MONTHS = "all"

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def parse_month(month: str) -> tuple:
    """
    Parse a "YYYY-MM" string into (year, month).

    Raises:
        ValueError: If the string is not a valid year-month
    """
    match = _MONTH_RE.match(month or "")
    if not match:
        raise ValueError(f"Invalid month '{month}', expected YYYY-MM")
    year, month_number = int(match.group(1)), int(match.group(2))
    if not 1 <= month_number <= 12:
        raise ValueError(f"Invalid month '{month}', month must be 01-12")
    return year, month_number


def trip_timestamp(trip) -> Optional[datetime]:
    return trip.start_time or trip.created_at


def trip_month(trip) -> Optional[str]:
    """Month key ("YYYY-MM") a trip is filed under."""
    timestamp = trip_timestamp(trip)
    if timestamp is None:
        return None
    return f"{timestamp.year:04d}-{timestamp.month:02d}"


def filter_trips_by_month(trips: Iterable, month: Optional[str]) -> List:
    """
    Keep the trips that fall in `month`.

    `month` is "YYYY-MM", or "all"/None to keep every trip. Input order
    is preserved.
    """
    trips = list(trips)
    if month is None or month == ALL_MONTHS:
        return trips

    year, month_number = parse_month(month)

    def in_month(trip) -> bool:
        timestamp = trip_timestamp(trip)
        return timestamp is not None and timestamp.year == year and timestamp.month == month_number

    return [trip for trip in trips if in_month(trip)]


def available_months(trips: Iterable) -> List[str]:
    """Distinct month keys present in `trips`, newest first."""
    months = {trip_month(trip) for trip in trips}
    months.discard(None)
    return sorted(months, reverse=True)


def group_trips_by_month(trips: Sequence) -> "OrderedDict[str, list]":
    """Group trips by month key, keeping months and trips in input order."""
    grouped: "OrderedDict[str, list]" = OrderedDict()
    for trip in trips:
        key = trip_month(trip)
        if key is None:
            continue
        grouped.setdefault(key, []).append(trip)
    return grouped


def summarize_trips(trips: Sequence, month: Optional[str], serialize) -> dict:
    """
    Build the trip section of a driver or vehicle detail view.

    Args:
        trips: Trips ordered newest first
        month: "YYYY-MM" or "all"
        serialize: Callable turning a trip into its response schema

    Raises:
        ValueError: If `month` is malformed
    """
    selected = month or ALL_MONTHS
    filtered = filter_trips_by_month(trips, selected)
    return {
        "trips": [serialize(trip) for trip in trips],
        "available_months": available_months(trips),
        "selected_month": selected,
        "filtered_trips": [serialize(trip) for trip in filtered],
        "completed_trips": sum(1 for trip in trips if trip.status == TripStatus.COMPLETED),
    }
