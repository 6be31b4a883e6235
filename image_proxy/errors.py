class HttpError(Exception):
    """Error carrying the HTTP status and the plain-text message sent to the client."""

    def __init__(self, message: str, status: int = 500):
        super().__init__(message)
        self.message = message
        self.status = status

    def __repr__(self) -> str:
        return f"HttpError(status={self.status}, message={self.message!r})"
