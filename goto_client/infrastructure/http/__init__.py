"""HTTP infrastructure package."""

from .cancellation import CancellationToken
from .retry import RetryConfig, RetryPolicy, RetryState
from .transport import RequestsTransport

__all__ = ['CancellationToken', 'RetryConfig', 'RetryPolicy', 'RetryState', 'RequestsTransport']
