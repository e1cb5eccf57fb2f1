"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# Civil calendar used for every "today" / "late" decision (UTC+05:45).
CIVIL_UTC_OFFSET_MINUTES = 5 * 60 + 45

EXPECTED_CHECK_IN_HOUR = 10
EXPECTED_CHECK_OUT_HOUR = 18

CHECKOUT_RADIUS_METERS = 500
EARTH_RADIUS_METERS = 6_371_000

MIN_LEAVE_REASON_LENGTH = 10
HALF_DAY_LENGTH = 0.5

DEFAULT_HISTORY_LIMIT = 30
DEFAULT_LIST_LIMIT = 200
