from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

# Per-client limits; routes choose their own rate with @limiter.limit(...)
limiter = Limiter(key_func=get_remote_address)

API_RATE = "60/minute"
PAGE_RATE = "30/minute"
MUTATION_RATE = "5/minute"
