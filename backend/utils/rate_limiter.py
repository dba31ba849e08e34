from fastapi import Request, HTTPException, status
import time
from collections import defaultdict
from typing import Dict, List


class RateLimiter:
    """Sliding-window limit per client IP, used as a FastAPI dependency."""

    def __init__(self, requests_limit: int, time_window: int, cleanup_interval: int = 600):
        self.requests_limit = requests_limit
        self.time_window = time_window  # in seconds
        self.cleanup_interval = cleanup_interval
        self.ip_requests: Dict[str, List[float]] = defaultdict(list)
        self.last_cleanup = time.time()

    def _get_client_ip(self, request: Request) -> str:
        """Real client IP: first X-Forwarded-For entry when behind a proxy."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        if request.client and request.client.host:
            return request.client.host
        return "127.0.0.1"

    def _recent(self, client_ip: str, now: float) -> List[float]:
        recent = [t for t in self.ip_requests[client_ip] if now - t < self.time_window]
        self.ip_requests[client_ip] = recent
        return recent

    async def __call__(self, request: Request):
        client_ip = self._get_client_ip(request)
        now = time.time()

        if now - self.last_cleanup > self.cleanup_interval:
            self._cleanup(now)
            self.last_cleanup = now

        if len(self._recent(client_ip, now)) >= self.requests_limit:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )

        self.ip_requests[client_ip].append(now)
        return True

    def _cleanup(self, now: float):
        """Forget IPs whose newest request has left the window"""
        stale = [
            ip for ip, timestamps in self.ip_requests.items()
            if not timestamps or now - timestamps[-1] > self.time_window
        ]
        for ip in stale:
            del self.ip_requests[ip]


# Note: per-process memory only; a multi-instance deployment needs a shared backend.

# 5 requests per minute for login / register
auth_rate_limiter = RateLimiter(requests_limit=5, time_window=60)

# 5 receipt scans per minute (Vision API is billed per call)
ocr_rate_limiter = RateLimiter(requests_limit=5, time_window=60)

# 10 texts per 10 minutes (Twilio is billed per message)
sms_rate_limiter = RateLimiter(requests_limit=10, time_window=600)

# 20 guest joins per minute
join_rate_limiter = RateLimiter(requests_limit=20, time_window=60)
