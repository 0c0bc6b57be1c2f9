"""Application-wide constants for the Artspace booking core."""

from __future__ import annotations

BRAND_NAME = "Artspace"

# Slot tiling
DEFAULT_SLOT_MINUTES = 30
MIN_SLOT_MINUTES = 5

# Money
DEFAULT_CURRENCY = "USD"
PRICE_QUANTUM = "0.01"

# Query limits
DEFAULT_QUERY_LIMIT = 100
MAX_QUERY_LIMIT = 500

# Text constraints
MAX_TITLE_LENGTH = 200
MAX_REASON_LENGTH = 255

# Cancellation reasons written by the system itself
CANCEL_REASON_PAYMENT_TIMEOUT = "payment_timeout"

# Request headers populated by the identity gateway in front of the API
ORGANIZATION_HEADER = "X-Organization-Id"
REQUESTER_ID_HEADER = "X-Requester-Id"
REQUESTER_ROLE_HEADER = "X-Requester-Role"
ORGANIZATION_TIMEZONE_HEADER = "X-Organization-Timezone"

# HMAC-SHA256 of the raw body, sent by the payment processor on callbacks
PAYMENT_SIGNATURE_HEADER = "X-Payment-Signature"

# API
API_TITLE = f"{BRAND_NAME} Booking API"
API_VERSION = "1.0.0"
