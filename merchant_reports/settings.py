# merchant_reports/settings.py
from typing import Optional, Dict, Any
from pydantic_settings import BaseSettings
from pydantic import model_validator, ValidationError
from dotenv import load_dotenv

from .models import LookupConfig, RateLimitConfig

load_dotenv() # Load .env file if it exists


class ConfigurationError(Exception):
    """Raised for invalid or unknown configuration supplied by the caller. Never retried."""
    pass


class Settings(BaseSettings):
    # Merchant API
    API_BASE_URL: str = "https://shoppingcontent.googleapis.com/content/v2.1/"
    REQUEST_TIMEOUT_SEC: int = 30

    # Retry policy for a single API call (total attempts = MAX_RETRIES + 1)
    MAX_RETRIES: int = 5
    INITIAL_RETRY_DELAY_MS: int = 1000

    # Report paging
    PREVIEW_PAGE_SIZE: int = 10
    EXPORT_PAGE_SIZE: int = 1000
    PAGE_TOKEN_FIELD: str = "pageToken"

    # Optional client-side throttling, both must be set to take effect
    RATE_LIMIT_CALLS: Optional[int] = None
    RATE_LIMIT_PERIOD_SEC: Optional[int] = None
    RATE_LIMIT: Optional[RateLimitConfig] = None

    LOG_LEVEL: str = "INFO"

    # Maps a lookup key used by the UI to the sheet/column holding its values.
    # Override with LOOKUP_CONFIG='{"merchantIds": {"sheet_name": "Config", "column_index": 1}}'
    LOOKUP_CONFIG: Dict[str, Dict[str, Any]] = {
        "merchantIds": {"sheet_name": "Config", "column_index": 1}, # Column A
    }

    @model_validator(mode='after')
    def _build_rate_limit_and_check_lookups(self) -> 'Settings':
        if self.RATE_LIMIT is None and self.RATE_LIMIT_CALLS and self.RATE_LIMIT_PERIOD_SEC:
            self.RATE_LIMIT = RateLimitConfig(limit=self.RATE_LIMIT_CALLS, period=self.RATE_LIMIT_PERIOD_SEC)

        # Fail at startup rather than on first lookup
        for key, entry in self.LOOKUP_CONFIG.items():
            try:
                LookupConfig(**entry)
            except (TypeError, ValidationError) as e:
                raise ConfigurationError(f"Invalid lookup config for '{key}': {entry}. Error: {e}") from e
        return self

    def get_lookup_config(self, lookup_key: str) -> LookupConfig:
        entry = self.LOOKUP_CONFIG.get(lookup_key)
        if entry is None:
            raise ConfigurationError(f"Unknown lookup key: '{lookup_key}'. Known keys: {sorted(self.LOOKUP_CONFIG)}")
        return LookupConfig(**entry)

settings = Settings()
