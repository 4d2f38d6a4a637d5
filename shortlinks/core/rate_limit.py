"""
Rate Limiting Configuration

Rate limiting is applied at the HTTP edge only; the resolver and analytics
services never see it.

- Uses slowapi (lightweight, FastAPI-compatible)
- IP-based limiting
- Limits come from settings so deployments can tune them
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from shortlinks.core.setting import settings

limiter = Limiter(key_func=get_remote_address)

# Format: "count/period" (e.g., "5/minute" means 5 requests per minute)
RATE_LIMITS = {
    "shorten": settings.RATE_LIMIT_SHORTEN,
    "redirect": settings.RATE_LIMIT_REDIRECT,
    "analytics": settings.RATE_LIMIT_ANALYTICS,
}
