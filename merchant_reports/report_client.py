import logging
from typing import Optional, List, Any

from .data_processor import extract_results, flatten_records
from .http_client import HttpClient
from .models import FlattenedRow, ReportRequest
from .pagination_handler import PaginationHandler
from .request_builder import build_request
from .settings import settings

logger = logging.getLogger(__name__)

class ReportClient:
    """Fetches merchant reports. One instance per bearer token; holds no per-report state."""

    def __init__(
        self,
        token: str,
        http_client: Optional[HttpClient] = None,
        base_url: Optional[str] = None,
        max_retries: Optional[int] = None,
        initial_delay_millis: Optional[int] = None,
    ):
        self.token = token
        self.base_url = base_url or settings.API_BASE_URL
        self.http_client = http_client or HttpClient()
        self.max_retries = max_retries if max_retries is not None else settings.MAX_RETRIES
        self.initial_delay_millis = initial_delay_millis if initial_delay_millis is not None else settings.INITIAL_RETRY_DELAY_MS
        self.paginator = PaginationHandler(self.http_client, self.max_retries, self.initial_delay_millis)

    def get_report(self, merchant_id: int, query: str, page_size: int, fetch_all: bool) -> List[Any]:
        """
        Runs `query` against the merchant's report search endpoint.
        With `fetch_all` every page is retrieved, otherwise only the first one.
        """
        report_request = ReportRequest(merchant_id=merchant_id, query=query, page_size=page_size, fetch_all=fetch_all)
        logger.info(f"Fetching report for merchant {report_request.merchant_id} (pageSize={report_request.page_size}, fetch_all={report_request.fetch_all})")

        request = build_request(
            f"{report_request.merchant_id}/reports/search",
            'POST',
            self.token,
            payload={"query": report_request.query, "pageSize": report_request.page_size},
            base_url=self.base_url,
        )

        if report_request.fetch_all:
            results = self.paginator.fetch_all(request)
        else:
            response = self.http_client.call(request, self.max_retries, self.initial_delay_millis)
            results = extract_results(response)

        logger.info(f"Final results for merchant {report_request.merchant_id}: {len(results)} rows.")
        return results

    def flatten(self, records: List[Any]) -> List[FlattenedRow]:
        return flatten_records(records)
