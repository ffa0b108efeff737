"""Exception taxonomy shared by pipeline stages and the job lifecycle."""

from __future__ import annotations


class TransportError(RuntimeError):
    """A collaborator (document store, model endpoint) could not be reached or failed."""

    def __init__(self, message: str, *, transient: bool) -> None:
        super().__init__(message)
        self.transient = transient


class MalformedMessageError(ValueError):
    """Queue message body cannot be turned into a job."""


class SectionParseError(ValueError):
    """Pattern parsing of one report section failed."""

    def __init__(self, section: str, message: str) -> None:
        super().__init__(f"{section}: {message}")
        self.section = section


class InvalidStatusTransitionError(ValueError):
    """Requested report status change is not allowed by the lifecycle."""
