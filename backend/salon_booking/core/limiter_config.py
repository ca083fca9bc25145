from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from salon_booking.core.config import get_limiter_storage_uri

# Global Limiter instance imported by controllers for per-route limits.
# create_app() binds it and may disable it (RATE_LIMIT_ENABLED=0).
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200 per hour", "50 per minute"],
    storage_uri=get_limiter_storage_uri(),
)
