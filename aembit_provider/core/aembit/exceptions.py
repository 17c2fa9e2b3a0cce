"""Aembit API exceptions for error handling."""


class AembitError(Exception):
    """Base exception for all Aembit API operations."""
    pass


class AembitAPIError(AembitError):
    """HTTP error from the Aembit Cloud API.
    
    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
    """
    
    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class AembitNotFoundError(AembitAPIError):
    """Entity lookup failed - identifier does not exist on the tenant."""
    pass


class AembitAuthenticationError(AembitError):
    """Token acquisition failed (identity token or token exchange)."""
    pass
