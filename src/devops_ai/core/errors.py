"""Error taxonomy shared by the managers, the provider adapter and the HTTP layer.

Every error knows the HTTP status it maps to so the boundary layer does the
translation in one place.
"""

from __future__ import annotations


class TutorError(Exception):
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class InvalidTopic(TutorError):
    status_code = 404
    public_message = "Topic not found"

    def __init__(self, topic_id: str) -> None:
        super().__init__(f"Topic not found: {topic_id}")
        self.topic_id = topic_id


class BadInput(TutorError):
    status_code = 400
    public_message = "Invalid JSON input"


class EmptyMessage(BadInput):
    public_message = "Message cannot be empty"


class ProviderError(TutorError):
    public_message = "Failed to generate response"


class TransportError(ProviderError):
    pass


class ProviderTimeout(TransportError):
    pass


class UpstreamError(ProviderError):
    def __init__(self, status: int, detail: str | None = None) -> None:
        message = f"provider returned HTTP {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.status = status
        self.detail = detail


class DecodeError(ProviderError):
    pass


class EmptyReply(ProviderError):
    pass


class StoreError(TutorError):
    pass
