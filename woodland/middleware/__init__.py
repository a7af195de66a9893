from .csrf import CSRFMiddleware  # noqa: F401
from .rate_limit import RateLimitMiddleware  # noqa: F401
from .security import SecurityHeadersMiddleware  # noqa: F401

__all__ = ["CSRFMiddleware", "RateLimitMiddleware", "SecurityHeadersMiddleware"]
