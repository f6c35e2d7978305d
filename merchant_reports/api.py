"""
Entry points called by the reporting UI. Each returns an ApiResult so the UI can show
either the data or a message; report failures never escape as exceptions.
"""
import logging
from typing import Callable, List, Any, Optional

from .http_client import HttpClient
from .models import ApiResult, FlattenedRow
from .report_client import ReportClient
from .settings import settings

# Configure logging based on settings
logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

TokenProvider = Callable[[], str]
RowSink = Callable[[List[FlattenedRow], str], None]   # (rows, sheet_name)
ColumnReader = Callable[[str, int], List[Any]]        # (sheet_name, 1-based column index)


def preview_report(
    query: str,
    merchant_id: int,
    token_provider: TokenProvider,
    page_size: int = settings.PREVIEW_PAGE_SIZE,
    http_client: Optional[HttpClient] = None,
) -> ApiResult:
    """Fetches the first page of a report and returns it flattened."""
    logger.info(f"Running preview_report() for \"{query}\" for merchant: {merchant_id}")
    try:
        client = ReportClient(token_provider(), http_client=http_client)
        results = client.get_report(merchant_id, query, page_size, fetch_all=False)
        return ApiResult(success=True, data=client.flatten(results))
    except Exception as e: # Any failure becomes a message for the UI
        message = f"Error fetching preview data: {e}"
        logger.error(message, exc_info=True)
        return ApiResult(success=False, message=message)


def export_report(
    query: str,
    merchant_id: int,
    sheet_name: str,
    token_provider: TokenProvider,
    sink: RowSink,
    page_size: int = settings.EXPORT_PAGE_SIZE,
    http_client: Optional[HttpClient] = None,
) -> ApiResult:
    """Fetches every page of a report, flattens it and hands the rows to `sink`."""
    logger.info(f"Running export_report() for \"{query}\" for merchant: {merchant_id} into '{sheet_name}'")
    try:
        client = ReportClient(token_provider(), http_client=http_client)
        results = client.get_report(merchant_id, query, page_size, fetch_all=True)
        rows = client.flatten(results)
        sink(rows, sheet_name)
        logger.info(f"Exported {len(rows)} rows to '{sheet_name}'.")
        return ApiResult(success=True)
    except Exception as e: # Any failure becomes a message for the UI
        message = f"Error exporting data: {e}"
        logger.error(message, exc_info=True)
        return ApiResult(success=False, message=message)


def get_lookup_column(lookup_key: str, column_reader: ColumnReader) -> ApiResult:
    """
    Reads the values configured for `lookup_key` (e.g. "merchantIds").
    An unknown key raises ConfigurationError straight away.
    """
    lookup = settings.get_lookup_config(lookup_key)
    logger.debug(f"Reading lookup '{lookup_key}' from sheet '{lookup.sheet_name}', column {lookup.column_index}")
    return ApiResult(success=True, data=column_reader(lookup.sheet_name, lookup.column_index))
