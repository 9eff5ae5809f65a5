"""
Teemiao error types.

Every failure in the build-info pipeline is one of the BuildInfoError
subclasses below. Each carries the pipeline stage it came from, and the
underlying library error is chained as ``__cause__``.
"""

from typing import Optional


class TeemiaoError(Exception):
    """Base class for all Teemiao errors."""

    stage: str = "teemiao"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        cause = self.__cause__
        if cause is not None:
            return f"[{self.stage}] {self.message}: {cause}"
        return f"[{self.stage}] {self.message}"


class ConfigError(TeemiaoError):
    """Configuration value has the wrong shape."""

    stage = "config"


class BuildInfoError(TeemiaoError):
    """Base class for build-info pipeline failures."""


# Repository stage

class RepositoryNotFound(BuildInfoError):
    """No git repository encloses the starting directory."""

    stage = "repository"


class RepositoryOpenFailed(BuildInfoError):
    """A repository was found but could not be opened."""

    stage = "repository"


# Revision stage

class NoCommitsYet(BuildInfoError):
    """HEAD points at a branch with no commits."""

    stage = "revision"


class HeadUnresolvable(BuildInfoError):
    """HEAD could not be dereferenced to a commit."""

    stage = "revision"


class ShorteningFailed(BuildInfoError):
    """No unambiguous short id could be produced for HEAD."""

    stage = "revision"


# Output stage

class OutputPathInvalid(BuildInfoError):
    stage = "output"


class WriteFailed(BuildInfoError):
    stage = "write"


class SerializationFailed(BuildInfoError):
    stage = "write"
