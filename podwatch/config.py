"""Configuration settings for the Pod Status Controller."""

# Watched resource
RESOURCE_KIND = "Pod"

# Requeue settings
REQUEUE_INTERVAL_SECONDS = 10
ERROR_REQUEUE_SECONDS = 5

# Watch settings
WATCH_NAMESPACE = ""  # Empty string = all namespaces
WATCH_TIMEOUT_SECONDS = 300
WATCH_RETRY_SECONDS = 5

# API request timeout for a single read (seconds)
API_REQUEST_TIMEOUT_SECONDS = 30

# Worker settings
DEFAULT_WORKERS = 1
WORKER_POLL_SECONDS = 1.0
WORKER_JOIN_TIMEOUT_SECONDS = 10
