import logging
from typing import Optional, Dict, Any

from .models import ApiRequest
from .settings import settings

logger = logging.getLogger(__name__)

def build_request(
    service_path: str,
    method: str,
    token: str,
    payload: Optional[Dict[str, Any]] = None,
    base_url: Optional[str] = None,
) -> ApiRequest:
    """
    Builds the request for `service_path` (e.g. "123/reports/search") relative to the API base URL.
    The payload is attached as-is so pagination can still copy and modify it; an empty one is dropped.
    """
    target_url = (base_url or settings.API_BASE_URL) + service_path
    request = ApiRequest(
        target_url=target_url,
        method=method,
        content_type='application/json',
        auth_header=f"Bearer {token}",
        payload=payload if payload else None,
    )
    logger.debug(f"Built {request.method} request for {target_url} (payload keys: {list(payload or {})})")
    return request
