import pytest

from src.staffing_portal.staffing_portal.attendance.geofence import distance_between, haversine_meters, is_within_radius
from src.staffing_portal.staffing_portal.attendance.model import GeoPoint

# Meters per degree of latitude on the 6,371 km sphere.
METERS_PER_DEGREE = 6_371_000 * 3.141592653589793 / 180

OFFICE = GeoPoint(27.7172, 85.3240)


def _north_of(point: GeoPoint, meters: float) -> GeoPoint:
    return GeoPoint(point.latitude + meters / METERS_PER_DEGREE, point.longitude)


def test_same_point_is_zero_meters():
    assert haversine_meters(27.7172, 85.3240, 27.7172, 85.3240) == 0.0


def test_distance_is_symmetric():
    a, b = OFFICE, GeoPoint(27.7000, 85.3000)

    assert distance_between(a, b) == pytest.approx(distance_between(b, a))


def test_one_degree_of_latitude():
    assert haversine_meters(0, 0, 1, 0) == pytest.approx(111_194.93, abs=0.01)


@pytest.mark.parametrize("meters, inside", [(120.0, True), (499.9, True), (500.1, False), (2500.0, False)])
def test_check_out_radius(meters, inside):
    distance = distance_between(OFFICE, _north_of(OFFICE, meters))

    assert distance == pytest.approx(meters, abs=1e-3)
    assert is_within_radius(distance) is inside


def test_radius_boundary_is_inclusive():
    assert is_within_radius(500.0) is True
    assert is_within_radius(500.0001) is False
    assert is_within_radius(80.0, radius_m=50.0) is False
