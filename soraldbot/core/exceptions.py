"""Exceptions raised by the Sorald repair step."""


class SoraldBotError(Exception):
    """Base exception for the repair step."""


class InitializationFailure(SoraldBotError):
    """Raised when the target commit or its originating branch cannot be resolved."""


class RepairEngineFailure(SoraldBotError):
    """Raised when the Sorald tool fails or cannot be launched."""


class HistoryTraversalFailure(SoraldBotError):
    """Raised when git objects cannot be read while walking history."""


class PullRequestError(SoraldBotError):
    """Raised when the GitHub API rejects a fork or pull request call."""
