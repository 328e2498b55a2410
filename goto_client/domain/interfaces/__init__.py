"""Domain interfaces package."""

from .transport import BinaryPart, CancellationSignal, RawResponse, Transport

__all__ = ["BinaryPart", "CancellationSignal", "RawResponse", "Transport"]
