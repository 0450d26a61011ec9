"""Error types raised inside the orchestrator.

Every error that can reach the envelope carries an optional HTTP status
code; the envelope uses it when present and falls back to 500.
"""


class OrchestratorError(Exception):
    """Base error for failures surfaced to the caller."""

    status_code: int | None = None

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class UnknownTaskError(OrchestratorError):
    """Task name matches no route."""

    status_code = 400

    def __init__(self, task: str) -> None:
        super().__init__(f"Unknown task: {task}")
        self.task = task


class InvalidPayloadError(OrchestratorError):
    """A routed task is missing required payload fields."""

    status_code = 400


class AgentHandlerError(OrchestratorError):
    """A remote agent handler failed or rejected the task."""

    def __init__(self, handler: str, message: str, status_code: int | None = None) -> None:
        super().__init__(message, status_code)
        self.handler = handler


class SessionNotFoundError(OrchestratorError):
    """Context was appended to a session that does not exist."""

    status_code = 404

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class ClassificationParseError(ValueError):
    """Model output did not contain a valid classification block.

    Raised by the parser and always recovered by the classifier.
    """
