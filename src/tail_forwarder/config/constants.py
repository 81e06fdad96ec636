"""
Constants for tail event normalization and Coralogix delivery.
"""

# =============================================================================
# Coralogix Log Record Defaults
# =============================================================================

# Console level -> Coralogix severity
# Coralogix severities: 1=Debug, 2=Verbose, 3=Info, 4=Warning, 5=Error, 6=Critical
SEVERITY_MAP = {
    "debug": 1,
    "info": 3,
    "log": 3,
    "warn": 4,
    "error": 5,
}

SEVERITY_DEBUG = 1
SEVERITY_INFO = 3
SEVERITY_WARNING = 4
SEVERITY_ERROR = 5

DEFAULT_SEVERITY = SEVERITY_INFO

# Configured default; the only string fallback applied to a record
DEFAULT_APPLICATION_NAME = "cloudflare-tail"

# className for every record except exceptions (which use the exception name)
WORKER_CLASS_NAME = "TailWorker"

# Log categories
CATEGORY_CONSOLE = "console"
CATEGORY_EXCEPTION = "exception"
CATEGORY_FETCH = "fetch"

CATEGORIES = (CATEGORY_CONSOLE, CATEGORY_EXCEPTION, CATEGORY_FETCH)

FETCH_CONVERSION_FAILED_TEXT = "Failed to convert fetch event"

# =============================================================================
# CDN Record (Fastly-style) Constants
# =============================================================================

CDN_BACKEND = "cloudflare_worker"
CDN_RECORD_VERSION = "1"

HELIX_METADATA = {
    "request_type": "dynamic",
    "backend_type": "cloudflare",
    "contentbus_prefix": "live",
}

# =============================================================================
# Batching / Delivery
# =============================================================================

# Coralogix recommends batching; bounds the size of each POST body
DEFAULT_CHUNK_SIZE = 100

DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0

# Fraction of missing-field diagnostics that are actually logged
DEFAULT_DIAGNOSTIC_SAMPLE_RATE = 0.1

# Coralogix Singles API ingress, per region
CORALOGIX_REGION_DOMAINS = {
    "EU1": "coralogix.com",
    "EU2": "eu2.coralogix.com",
    "US1": "coralogix.us",
    "US2": "cx498.coralogix.com",
    "AP1": "coralogix.in",
    "AP2": "coralogixsg.com",
    "AP3": "ap3.coralogix.com",
}

SINGLES_API_PATH = "/logs/v1/singles"
