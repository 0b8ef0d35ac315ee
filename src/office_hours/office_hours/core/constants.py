"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

LEADERS_TOPIC = "leaders"
SESSIONS_TOPIC = "sessions"

# Bulk deletes commit in chunks below the backing store's 500-op batch ceiling.
RESET_BATCH_SIZE = 450

DASHBOARD_TICK_SECONDS = 1.0

MS_PER_MINUTE = 60_000
