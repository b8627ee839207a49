import os

DEFAULT_TARGETS = [
    "https://www.google.com",
    "https://www.facebook.com",
    "https://www.github.com",
    "https://www.giub.com/",
    "https://localhost:8080",
    "https://tools-httpstatus.pickup-services.com/404",
    "https://tools-httpstatus.pickup-services.com/503",
    "https://tools-httpstatus.pickup-services.com/200?sleep=5000",
]


def _split_targets(raw):
    return [t.strip() for t in raw.split(",") if t.strip()]


class Config:
    """
    Configuration class for environment variables and default settings.
    """

    # Comma-separated list of URLs; falls back to the built-in target set
    TARGETS = _split_targets(os.environ.get("NETPULSE_TARGETS", "")) or list(
        DEFAULT_TARGETS
    )
    PROBE_INTERVAL_MS = int(os.environ.get("PROBE_INTERVAL_MS", "500"))
    PROBE_TIMEOUT_SECONDS = float(os.environ.get("PROBE_TIMEOUT_SECONDS", "5"))
    GLOBAL_SLOT_SIZE = int(os.environ.get("GLOBAL_SLOT_SIZE", "10"))

    METRICS_HOST = os.environ.get("METRICS_HOST", "0.0.0.0")
    METRICS_PORT = int(os.environ.get("METRICS_PORT", "8080"))
    METRICS_PATH = os.environ.get("METRICS_PATH", "/metrics")

    @classmethod
    def probe_interval_seconds(cls) -> float:
        return cls.PROBE_INTERVAL_MS / 1000.0
