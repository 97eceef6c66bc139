from typing import Optional


class AnalystError(Exception):
    """Base exception for all analyst client errors"""


class RequestError(AnalystError):
    """A request could not be built, raised before any network call"""


class MissingPointError(RequestError):
    def __init__(self, message: str = "Lat/lng point required."):
        super().__init__(message)


class MissingGraphIdError(RequestError):
    def __init__(self, message: str = "Graph ID required."):
        super().__init__(message)


class MissingDestinationPointsetIdError(RequestError):
    def __init__(self, message: str = "Shapefile ID required."):
        super().__init__(message)


MissingShapefileIdError = MissingDestinationPointsetIdError


class NoResultYetError(AnalystError):
    def __init__(
        self, message: str = "No result key yet, run a single point request first."
    ):
        super().__init__(message)


class APIError(AnalystError):
    """Base error for calls to the analysis API"""


class NetworkError(APIError):
    """Connection or transport failure"""


class ResponseParseError(APIError):
    """Response body is not the JSON the client expects"""


class ServerError(APIError):
    def __init__(self, status_code: int, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Server responded with {status_code}: {detail}")
