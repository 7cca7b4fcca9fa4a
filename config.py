import os

import pytz

# Collections
USERS_COLLECTION = "users"
ORG_VERIFICATIONS_COLLECTION = "org_verifications"

# Default database when MONGO_DB is not set
DEFAULT_MONGO_DB = "buzzd"
DEFAULT_TIMEOUT_MS = 10000

# Inspection job shows only the newest requests
INSPECT_LIMIT = 5

# Timezone used when printing timestamps
DEFAULT_DISPLAY_TZ = "UTC"


def display_tz(environ=None):
    """Return the pytz zone named by ``DISPLAY_TZ``.

    Raises ``pytz.UnknownTimeZoneError`` for names pytz doesn't know.
    """

    env = os.environ if environ is None else environ
    return pytz.timezone(env.get("DISPLAY_TZ") or DEFAULT_DISPLAY_TZ)
