"""Error taxonomy for session and description operations."""


class ImageDescriberError(Exception):
    """Base class for errors surfaced to the user."""


class ValidationError(ImageDescriberError):
    """User input failed a precondition."""


class NoActiveSessionError(ImageDescriberError):
    """A session-scoped operation was attempted with no active session."""

    def __init__(
        self, message: str = "Please select or create a session first"
    ) -> None:
        super().__init__(message)


class SubmissionInProgressError(ImageDescriberError):
    """Another batch of images is still being described."""

    def __init__(
        self, message: str = "Descriptions are still being generated"
    ) -> None:
        super().__init__(message)


class RequestError(ImageDescriberError):
    """A description request for one image failed."""

    def __init__(self, filename: str, detail: str | None = None) -> None:
        self.filename = filename
        self.detail = detail
        super().__init__(f"Failed to generate description for {filename}")
