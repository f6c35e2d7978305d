import copy
import logging
from typing import Optional, Dict, Any, List

from .data_processor import extract_results
from .http_client import HttpClient
from .models import ApiRequest, ApiResponse
from .settings import settings

logger = logging.getLogger(__name__)

class PaginationHandler:
    def __init__(
        self,
        http_client: HttpClient,
        max_retries: Optional[int] = None,
        initial_delay_millis: Optional[int] = None,
        page_token_field: Optional[str] = None,
    ):
        self.http_client = http_client
        self.max_retries = max_retries if max_retries is not None else settings.MAX_RETRIES
        self.initial_delay_millis = initial_delay_millis if initial_delay_millis is not None else settings.INITIAL_RETRY_DELAY_MS
        self.page_token_field = page_token_field or settings.PAGE_TOKEN_FIELD

    def _request_for_page(self, request: ApiRequest, page_token: Optional[str]) -> ApiRequest:
        # Fresh payload per page so the caller's request is never touched
        payload: Dict[str, Any] = copy.deepcopy(request.payload) if request.payload else {}
        if page_token:
            payload[self.page_token_field] = page_token
        return request.model_copy(update={"payload": payload or None})

    @staticmethod
    def _next_cursor(response: ApiResponse) -> Optional[str]:
        # Only null or "" ends pagination; any other string is an opaque cursor
        return response.next_page_token or None

    def fetch_all(self, request: ApiRequest) -> List[Any]:
        """
        Follows nextPageToken until the server stops returning one and concatenates every
        page's results in order. The first page is requested without a token. Any error
        propagates immediately and nothing fetched so far is returned.
        """
        all_results: List[Any] = []
        page_token: Optional[str] = None
        page_count = 0

        while True:
            page_request = self._request_for_page(request, page_token)
            response = self.http_client.call(page_request, self.max_retries, self.initial_delay_millis)
            page_count += 1

            page_results = extract_results(response)
            all_results.extend(page_results)
            logger.debug(f"Page {page_count} of {request.target_url}: {len(page_results)} results.")

            page_token = self._next_cursor(response)
            if page_token is None:
                logger.info(f"All pages fetched for {request.target_url}: {page_count} page(s), {len(all_results)} results.")
                return all_results
            logger.debug(f"Next page token for {request.target_url}: {page_token}")
