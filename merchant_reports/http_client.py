# merchant_reports/http_client.py
import json
import logging
import time
import requests
from typing import Optional, Dict, Any, Callable
from pydantic import ValidationError
from ratelimit import limits, RateLimitException

from .models import ApiRequest, ApiResponse, RateLimitConfig, RetryState
from .settings import settings

logger = logging.getLogger(__name__)

class HttpClientError(Exception):
    """Base class for failures raised by HttpClient."""
    def __init__(self, message, status_code=None, response_text=None):
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text

class TransportError(HttpClientError):
    """The call could not complete (network, timeout) or the body was not a JSON object."""
    pass

class ApiError(HttpClientError):
    """The server answered with an `error` object."""
    def __init__(self, message, code, status_code=None, response_text=None):
        super().__init__(message, status_code, response_text)
        self.code = code

class RetriesExhaustedError(HttpClientError):
    """Terminal failure. The message is the last observed failure's message, unchanged."""
    def __init__(self, last_error: HttpClientError, attempts: int):
        super().__init__(str(last_error), last_error.status_code, last_error.response_text)
        self.last_error = last_error
        self.attempts = attempts


class HttpClient:
    def __init__(
        self,
        timeout_sec: Optional[int] = None,
        rate_limit: Optional[RateLimitConfig] = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.timeout = timeout_sec if timeout_sec is not None else settings.REQUEST_TIMEOUT_SEC
        self.rate_limit = rate_limit if rate_limit is not None else settings.RATE_LIMIT
        self.session_factory = session_factory
        self.sleep = sleep
        self._configure_rate_limiter()

    def _configure_rate_limiter(self):
        self.rate_limited_session_request = None
        if self.rate_limit:
            # Define the actual request function that will be rate-limited
            def actual_request_func(session_obj, method, url, **kwargs):
                return session_obj.request(method=method, url=url, **kwargs)

            self.rate_limited_session_request = limits(calls=self.rate_limit.limit, period=self.rate_limit.period)(actual_request_func)
            logger.info(f"Rate limiter configured: {self.rate_limit.limit} calls / {self.rate_limit.period}s")
        else:
            logger.debug("No rate limit configured")

    def _execute_request_with_session(self,
        session: requests.Session,
        method: str,
        url: str,
        request_kwargs: Dict[str, Any]
    ) -> requests.Response:
        """Executes the request using the session, applying rate limiting if configured."""
        if self.rate_limited_session_request:
            try:
                return self.rate_limited_session_request(session, method, url, **request_kwargs)
            except RateLimitException as rle:
                logger.warning(f"Rate limit hit for {url}. Sleeping for {rle.period_remaining:.2f}s...")
                self.sleep(rle.period_remaining)
                # One unthrottled attempt after waiting out the period
                return session.request(method=method, url=url, **request_kwargs)
        return session.request(method=method, url=url, **request_kwargs)

    def _build_request_kwargs(self, request: ApiRequest) -> Dict[str, Any]:
        request_kwargs = {
            "headers": {
                "Authorization": request.auth_header,
                "Content-Type": request.content_type,
            },
            "data": json.dumps(request.payload) if request.payload else None,
            "timeout": self.timeout,
        }
        # Filter out top-level None kwargs to avoid issues with requests library
        return {k: v for k, v in request_kwargs.items() if v is not None}

    def _send_once(self, session: requests.Session, request: ApiRequest, request_kwargs: Dict[str, Any]) -> ApiResponse:
        url = request.target_url
        try:
            response = self._execute_request_with_session(session, request.method, url, request_kwargs)
        except requests.exceptions.RequestException as e: # Timeout, ConnectionError, ...
            raise TransportError(f"Request to {url} failed: {e}") from e

        # HTTP status is not checked here: the API reports failures in the body's `error` object
        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(f"Malformed JSON body from {url} (status {response.status_code}): {e}",
                                 response.status_code, response.text[:500]) from e
        if not isinstance(body, dict):
            raise TransportError(f"Expected a JSON object from {url}, got {type(body).__name__}",
                                 response.status_code, response.text[:500])
        try:
            api_response = ApiResponse.model_validate(body)
        except ValidationError as e:
            raise TransportError(f"Unexpected response shape from {url}: {e}",
                                 response.status_code, response.text[:500]) from e

        if api_response.error is not None:
            raise ApiError(api_response.error.message, api_response.error.code,
                           response.status_code, response.text[:500])
        return api_response

    def call(
        self,
        request: ApiRequest,
        max_retries: int = 5,
        initial_delay_millis: int = 1000,
    ) -> ApiResponse:
        """
        Sends `request` and returns the parsed response.

        Any failure (transport or an `error` object in the body) is retried after a blocking
        sleep that starts at `initial_delay_millis` and doubles each time. After
        `max_retries + 1` failed attempts a RetriesExhaustedError carrying the last
        failure's message is raised.
        """
        request_kwargs = self._build_request_kwargs(request)
        total_attempts = max_retries + 1
        state = RetryState(attempt_count=0, current_delay_millis=initial_delay_millis)

        logger.debug(f"Requesting {request.method} {request.target_url} with payload: {request.payload}")

        with self.session_factory() as session:
            while True:
                try:
                    api_response = self._send_once(session, request, request_kwargs)
                    logger.info(f"{request.method} to {request.target_url} successful after {state.attempt_count + 1} attempt(s).")
                    return api_response
                # TODO: stop retrying 4xx ApiErrors (bad query, permission denied); only 500 used to be retried
                except (TransportError, ApiError) as e:
                    code_part = f" (code {e.code})" if isinstance(e, ApiError) else ""
                    logger.warning(f"{type(e).__name__}{code_part} for {request.target_url}: {e}. Attempt {state.attempt_count + 1}/{total_attempts}")
                    if not state.can_retry(max_retries):
                        logger.error(f"Max retries ({total_attempts} attempts) reached for {request.target_url}. Last error: {e}", exc_info=True)
                        raise RetriesExhaustedError(e, attempts=state.attempt_count + 1) from e

                    logger.info(f"Retrying {request.target_url} in {state.current_delay_millis}ms...")
                    self.sleep(state.current_delay_millis / 1000)
                    state = state.advance()
