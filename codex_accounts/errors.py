"""Error types for account storage and rate limit synchronization"""

from typing import Optional


class CotateError(Exception):
    """Base class for all cotate errors"""


class MalformedTokenError(CotateError, ValueError):
    """Token is not a decodable three-segment JWT"""


class TransportError(CotateError):
    """Network-level failure while talking to an external endpoint"""


class UpstreamStatusError(CotateError):
    """Endpoint answered with a status that carries no usable payload"""

    def __init__(self, message: str, status_code: Optional[int]):
        super().__init__(message)
        self.status_code = status_code


class AuthorizationError(UpstreamStatusError):
    """Endpoint rejected the bearer token (HTTP 401)"""

    def __init__(self, message: str = "Unauthorized", status_code: int = 401):
        super().__init__(message, status_code)


class NotFoundError(CotateError):
    """Requested account or store file does not exist"""


class StoreIOError(CotateError):
    """Reading or writing a store file failed"""
