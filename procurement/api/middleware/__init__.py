from .request_log import RequestLogMiddleware
from .security_headers import SecurityHeadersMiddleware

__all__ = ["RequestLogMiddleware", "SecurityHeadersMiddleware"]
