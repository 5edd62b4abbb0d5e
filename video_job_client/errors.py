from typing import Optional


class VideodbError(Exception):
    """Generic service error, also used for timeouts and unknown failures."""

    def __init__(self, message: str = "VideoDB Error", cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class AuthenticationError(VideodbError):
    """Raised when the API key is missing or rejected."""

    def __init__(self, message: str = "Authentication Error", cause: Optional[BaseException] = None):
        super().__init__(message, cause)


class InvalidRequestError(VideodbError):
    """Raised when the service rejects a request as malformed."""

    def __init__(self, message: str = "Invalid Request", cause: Optional[BaseException] = None):
        super().__init__(message, cause)
