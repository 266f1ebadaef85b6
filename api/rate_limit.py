from slowapi import Limiter
from slowapi.util import get_remote_address

# Shared by the route decorators and app.state; toggled by RATE_LIMIT_ENABLED
limiter = Limiter(key_func=get_remote_address, default_limits=["100/minute"])
