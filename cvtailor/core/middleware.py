"""HTTP request logging."""

import time

from fastapi import Request

from cvtailor.core.logging import get_logger

logger = get_logger("cvtailor.http")


async def log_requests(request: Request, call_next):
    """Log method, path, status and duration of every request."""
    start = time.perf_counter()
    method = request.method
    path = request.url.path
    try:
        response = await call_next(request)
    except Exception:
        elapsed = time.perf_counter() - start
        logger.exception("%s %s ERROR after %.2fs", method, path, elapsed)
        raise

    elapsed = time.perf_counter() - start
    logger.info("%s %s -> %d (%.2fs)", method, path, response.status_code, elapsed)
    return response
