"""Client for a WordPress headless CMS: cached reads, backoff and call-site retry."""

from wpcontent.clients.errors import (
    ErrorKind,
    HTTPStatusError,
    InvalidResponse,
    NetworkFailure,
    NotFoundError,
    RequestCancelled,
    RequestTimeout,
    ValidationError,
    WordPressAPIError,
    describe_error,
)
from wpcontent.clients.wordpress import WordPressClient, close_wordpress_client, get_wordpress_client
from wpcontent.config import WordPressSettings, load_settings
from wpcontent.utils.retry import LoadResult, RetryOrchestrator, RetryPhase, RetryState, run_with_retry

__version__ = "0.1.0"

__all__ = [
    "ErrorKind",
    "HTTPStatusError",
    "InvalidResponse",
    "LoadResult",
    "NetworkFailure",
    "NotFoundError",
    "RequestCancelled",
    "RequestTimeout",
    "RetryOrchestrator",
    "RetryPhase",
    "RetryState",
    "ValidationError",
    "WordPressAPIError",
    "WordPressClient",
    "WordPressSettings",
    "close_wordpress_client",
    "describe_error",
    "get_wordpress_client",
    "load_settings",
    "run_with_retry",
]
