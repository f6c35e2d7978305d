from typing import Optional, Dict, Any, List, Union
from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

# Any value a JSON document can hold. Mappings are descended into when flattening,
# every other variant (lists included) is a leaf.
JsonValue = Union[str, int, float, bool, None, List["JsonValue"], Dict[str, "JsonValue"]]
JsonRecord = Dict[str, JsonValue]
# Single-level record keyed by dot-joined paths, e.g. {"productView.title": "..."}
FlattenedRow = Dict[str, JsonValue]


# --- Wire models ---
class ApiRequest(BaseModel):
    """One fully-built call against the merchant API. Never mutated; copy it to change the payload."""
    model_config = ConfigDict(frozen=True)

    target_url: str
    method: str = 'GET'
    content_type: str = 'application/json'
    auth_header: str
    payload: Optional[Dict[str, Any]] = None # Serialized to JSON by the HTTP client, not here

    @field_validator('method')
    def normalize_method(cls, v):
        return v.upper()

class ApiErrorDetail(BaseModel):
    model_config = ConfigDict(extra='allow') # Server also sends 'status', 'details', ...

    code: int
    message: str

class ApiResponse(BaseModel):
    model_config = ConfigDict(extra='allow', populate_by_name=True)

    results: Optional[List[Any]] = None
    next_page_token: Optional[str] = Field(default=None, alias='nextPageToken')
    error: Optional[ApiErrorDetail] = None

    @property
    def has_more_pages(self) -> bool:
        return bool(self.next_page_token)


# --- Retry / throttling ---
class RetryState(BaseModel):
    """Attempt bookkeeping for a single HttpClient.call(). Each step produces a new state."""
    model_config = ConfigDict(frozen=True)

    attempt_count: int = Field(default=0, ge=0)
    current_delay_millis: int = Field(default=0, ge=0)

    def can_retry(self, max_retries: int) -> bool:
        return self.attempt_count < max_retries

    def advance(self) -> 'RetryState':
        return RetryState(attempt_count=self.attempt_count + 1, current_delay_millis=self.current_delay_millis * 2)

class RateLimitConfig(BaseModel):
    limit: int  # Number of requests allowed
    period: int # Time period in seconds


# --- Orchestration layer models ---
class ReportRequest(BaseModel):
    merchant_id: PositiveInt
    query: str # Opaque filter language, passed through untouched
    page_size: PositiveInt = 10
    fetch_all: bool = False

class LookupConfig(BaseModel):
    sheet_name: str
    column_index: PositiveInt # 1-based, column A == 1

class ApiResult(BaseModel):
    """Envelope returned to the UI layer: either data or a displayable message."""
    success: bool
    message: Optional[str] = None
    data: Optional[Any] = None
