"""
Centralized timeout configuration for outbound HTTP calls.
Upstream open-data APIs are slow; the remote cache and content service should fail fast.
"""

import os


class TIMEOUTS:
    """Centralized timeout values in seconds"""

    # Single attempt against the legislative open-data APIs
    http_request = float(os.getenv("TIMEOUT_HTTP_REQUEST", "20"))

    # Remote document store reads and writes
    remote_cache = float(os.getenv("TIMEOUT_REMOTE_CACHE", "10"))

    # Content generation (LLM) requests
    content = float(os.getenv("TIMEOUT_CONTENT", "30"))
