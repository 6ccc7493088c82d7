"""
Error taxonomy for the visual reflection endpoint.
Each error carries the HTTP status the dispatcher answers with.
"""


class ReflectionError(Exception):
    status = 500


class ValidationError(ReflectionError):
    status = 400


class MethodNotAllowed(ReflectionError):
    status = 405

    def __init__(self, message: str = "Method not allowed"):
        super().__init__(message)


class UpstreamError(ReflectionError):
    """The LLM call failed or returned something we can't use."""
    status = 500


class UpstreamEmptyResponse(UpstreamError):
    pass


class UpstreamMalformedJSON(UpstreamError):
    pass


class UpstreamEmptyField(UpstreamError):
    pass


class StorageWriteFailure(Exception):
    """An insert failed. Never reaches the client, only shows up as stored=false."""
