"""HTTP transport and retry policy for the Zuul REST API."""

from zuultail.client.http_client import ApiHttpClient
from zuultail.client.retry import RetryPolicy, with_retry

__all__ = ["ApiHttpClient", "RetryPolicy", "with_retry"]
