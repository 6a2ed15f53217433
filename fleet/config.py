"""Engine constants and environment-driven settings."""

import os
from pathlib import Path

# Privileged operations must explain themselves
MIN_REASON_LENGTH = 8

WORK_ORDER_PREFIX = "WO"

DEFAULT_FLEET_FILE = "fleet.yaml"


def fleet_file() -> Path:
    """Path of the fleet YAML snapshot (FLEET_FILE overrides the default)."""
    return Path(os.environ.get("FLEET_FILE", DEFAULT_FLEET_FILE))


def log_level() -> str:
    return os.environ.get("FLEET_LOG_LEVEL", "INFO").upper()


def secret_key() -> str:
    return os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")


# Documents expiring within this many days are flagged DUE_SOON
DOCUMENT_WARNING_DAYS = 7

# How many documents the "upcoming expirations" list shows
UPCOMING_DOCUMENTS_LIMIT = 30

# Rolling report windows, in days
REPORT_PERIOD_DAYS = {"week": 7, "month": 30}
