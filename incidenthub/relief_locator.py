"""Relief Center Locator.

Nearest-neighbour lookup over the relief center store. No radius cap: the
closest center is returned whenever at least one exists.
"""

import logging
from dataclasses import dataclass

from incidenthub.core.errors import NotFound
from incidenthub.core.geo import GeoPoint
from incidenthub.core.models import ReliefCenter
from incidenthub.core.stores import ReliefCenterStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NearestCenter:
    """Closest relief center to a query point.

    Attributes:
        center: The relief center
        distance_km: Great-circle distance from the query point
    """
    center: ReliefCenter
    distance_km: float


class ReliefCenterLocator:
    """Finds the relief center nearest to a point."""

    def __init__(self, store: ReliefCenterStore) -> None:
        self.store = store

    def nearest(self, point: GeoPoint) -> NearestCenter:
        """Find the relief center closest to point.

        Raises:
            NotFound: If there are no relief centers
            BackendUnavailable: If the store fails
        """
        found = self.store.nearest(point)
        if found is None:
            raise NotFound("Relief center")

        center, distance = found
        logger.info("Nearest relief center to %s is %s (%.1f km)", point.coordinates, center.id, distance)
        return NearestCenter(center=center, distance_km=distance)
