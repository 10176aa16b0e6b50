"""HTTP transport for the static fetch clients."""

from .client import AsyncHttpClient
from .protocols import HttpClient, HttpResponse

__all__ = ["AsyncHttpClient", "HttpClient", "HttpResponse"]
