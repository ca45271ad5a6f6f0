"""
Shared constants for negative keyword provisioning.
"""

import re

# Match types / levels accepted by the ledger and the Google Ads API
MATCH_TYPES = ("EXACT", "PHRASE", "BROAD")
LEVELS = ("CAMPAIGN", "AD_GROUP", "SHARED_LIST")

# Request lifecycle
STATUS_PENDING = "PENDING"
STATUS_ACTIVE = "ACTIVE"
STATUS_FAILED = "FAILED"
TERMINAL_STATUSES = (STATUS_ACTIVE, STATUS_FAILED)

PENDING_MESSAGE = "Waiting for processing"

# Processing triggers
TRIGGER_ACTION_PROCESS = "PROCESS_NEGATIVE_KEYWORDS"
TRIGGER_PENDING = "PENDING"
TRIGGER_COMPLETED = "COMPLETED"

# Keyword text rules
KEYWORD_MIN_LENGTH = 1
KEYWORD_MAX_LENGTH = 80
KEYWORD_ALLOWED_CHARACTERS = re.compile(r"^[A-Za-z0-9\s\-_.,!?]+$")

MAX_KEYWORDS_PER_REQUEST = 100

# Scoring
WASTED_SPEND_THRESHOLD = 5.0       # cost must exceed this to be an opportunity
TOP_OPPORTUNITIES = 10
ESTIMATED_IMPRESSIONS_PER_CLICK = 10

BRAND_TERMS = ("brand", "official", "store", "shop", "buy", "purchase")
PRODUCT_TERMS = ("price", "cost", "cheap", "free", "discount", "sale")

DEFAULT_WORKER_INTERVAL_MINUTES = 15

# DuckDB file lock (held by whichever process has the file open)
LOCK_MAX_RETRIES = 5
LOCK_BASE_DELAY_SECONDS = 0.05
