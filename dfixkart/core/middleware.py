"""Request logging middleware"""
import logging
import time

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware:
    """Log method, path, status and duration for every request"""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)
        duration_ms = (time.monotonic() - started) * 1000
        line = f"{request.method} {request.path} {response.status_code} {duration_ms:.1f}ms"
        if response.status_code >= 500:
            logger.error(line)
        elif response.status_code == 404:
            logger.warning(f"404 {line}")
        elif response.status_code >= 400:
            logger.warning(line)
        else:
            logger.info(line)
        return response
