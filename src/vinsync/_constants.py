"""Internal constants shared across the library."""

DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_KEY_PREFIX = "vin"

# ------------------------------------------------------------------
# Chassis hash fields
# ------------------------------------------------------------------

FIELD_PLATE = "plate"
FIELD_OWNER = "owner"
FIELD_LAST_MODIFIED = "last_modified"
FIELD_BATCH_TAG = "batch_tag"

# ------------------------------------------------------------------
# Retry defaults (attempts per record, linear backoff base in seconds)
# ------------------------------------------------------------------

DEFAULT_RETRY_BASE_DELAY = 0.01
NEW_MAX_ATTEMPTS = 3
PLATE_CHANGE_MAX_ATTEMPTS = 3
# Moving a plate between two chassis touches three keys owned by two entities.
REASSIGN_MAX_ATTEMPTS = 5

BATCH_TAG_TIME_FORMAT = "%Y%m%d%H%M%S"
