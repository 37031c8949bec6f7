from typing import Optional


class ModelError(Exception):
    """A request that failed without a usable HTTP response."""

    def __init__(self, error=None, message: str = None, status: Optional[int] = None,
                 code: str = None, body: Optional[str] = None):
        if message is None:
            message = str(error) if error is not None else 'Model request failed'
        super().__init__(message)
        self.message = message
        self.cause = error
        self.status = status if status is not None else self._status_of(error)
        self.code = code or getattr(error, 'code', None) or (type(error).__name__ if error is not None else None)
        self.body = body

    @staticmethod
    def _status_of(error) -> Optional[int]:
        status = getattr(error, 'status', None)
        if status is not None:
            return status
        response = getattr(error, 'response', None)
        return getattr(response, 'status_code', None)

    def __repr__(self):
        return f"{type(self).__name__}({self.message!r}, status={self.status!r})"


class ResponseParseError(ModelError):
    """Response body was not valid JSON."""

    def __init__(self, error, status: Optional[int], body: Optional[str]):
        super().__init__(error, status=status, code='EPARSE', body=body)
