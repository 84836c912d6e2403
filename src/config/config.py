import os


def _optional_int(name):
    value = os.environ.get(name)
    return int(value) if value not in (None, "") else None


class Config:
    """
    Configuration class for environment variables and default settings.
    """

    # External measurement backend (Globalping-compatible API)
    PROBE_API_URL = os.environ.get("PROBE_API_URL", "https://api.globalping.io/v1")
    PROBE_REQUEST_TIMEOUT = float(os.environ.get("PROBE_REQUEST_TIMEOUT", "10"))
    PROBE_PACKETS = int(os.environ.get("PROBE_PACKETS", "3"))
    PROBE_MAX_ATTEMPTS = int(os.environ.get("PROBE_MAX_ATTEMPTS", "20"))
    PROBE_POLL_INTERVAL_SECONDS = float(
        os.environ.get("PROBE_POLL_INTERVAL_SECONDS", "1.0")
    )
    # Settled probes stay shareable this long before eviction
    PROBE_SETTLE_GRACE_SECONDS = float(
        os.environ.get("PROBE_SETTLE_GRACE_SECONDS", "1.0")
    )

    # Round pacing against the backend rate limit
    BATCH_SIZE = int(os.environ.get("BATCH_SIZE", "2"))
    BATCH_DELAY_SECONDS = float(os.environ.get("BATCH_DELAY_SECONDS", "0.5"))
    PARTIAL_SNAPSHOT_EVERY = int(os.environ.get("PARTIAL_SNAPSHOT_EVERY", "5"))
    MIXED_PROBE_LIMIT = int(os.environ.get("MIXED_PROBE_LIMIT", "20"))

    HISTORY_MAX_SAMPLES = int(os.environ.get("HISTORY_MAX_SAMPLES", "1000"))
    REFRESH_INTERVAL_SECONDS = float(os.environ.get("REFRESH_INTERVAL_SECONDS", "30"))
    BOOTSTRAP_WINDOW_SECONDS = int(
        os.environ.get("BOOTSTRAP_WINDOW_SECONDS", "3600")
    )  # 1 hour
    BOOTSTRAP_STEP_SECONDS = int(os.environ.get("BOOTSTRAP_STEP_SECONDS", "60"))

    ACQUISITION_MODE = os.environ.get("ACQUISITION_MODE", "simulated")
    # Fixed seed makes simulated values reproducible
    RANDOM_SEED = _optional_int("RANDOM_SEED")
    # Optional JSON file replacing the built-in endpoint table
    ENDPOINTS_FILE = os.environ.get("ENDPOINTS_FILE")

    SERVER_HOST = os.environ.get("SERVER_HOST", "0.0.0.0")
    SERVER_PORT = int(os.environ.get("SERVER_PORT", "8000"))
