"""
Per-client request limits (slowapi) for the admin login and image uploads.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

LOGIN_LIMIT = "5/minute"
UPLOAD_LIMIT = "20/hour"


def client_ip(request: Request) -> str:
    """
    Address the limits are counted against.
    Behind the hosting proxy the original client is the first X-Forwarded-For entry.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


# In-process counters; each worker process keeps its own
limiter = Limiter(key_func=client_ip, storage_uri="memory://")
