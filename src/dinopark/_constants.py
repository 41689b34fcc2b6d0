"""Internal constants shared across the library."""

from datetime import timedelta

FEED_URL = "https://dinoparks.herokuapp.com/nudls/feed"
USER_AGENT = "Dinopark-Maintenance/1.0"

# ------------------------------------------------------------------
# Park grid  (26 columns x 16 rows = 416 zones)
# ------------------------------------------------------------------

ZONE_COLUMNS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
ZONE_ROW_COUNT = 16

# ------------------------------------------------------------------
# Safety and maintenance rules
# ------------------------------------------------------------------

# One canonical default for shells and any agent whose feed entry omits it.
DEFAULT_DIGESTION_PERIOD_HOURS = 12
# A year; longer periods are treated as bad feed data.
MAX_DIGESTION_PERIOD_HOURS = 24 * 365
MAINTENANCE_INTERVAL = timedelta(days=30)

# Agent ids are stored as signed 64-bit SQLite integers.
MAX_EXTERNAL_ID = 2**63 - 1

# Consecutive failed polls after which the poller reports a prolonged outage.
POLL_OUTAGE_THRESHOLD = 5
