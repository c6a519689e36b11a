"""Custom exception hierarchy for Merged Recent Comments."""


class MergedCommentsError(Exception):
    """Base exception for all Merged Recent Comments errors."""

    def __init__(self, message: str = "An error occurred in Merged Recent Comments"):
        self.message = message
        super().__init__(self.message)


class HostError(MergedCommentsError):
    """Base exception for errors raised by the host CMS data layer."""

    def __init__(self, message: str = "A host error occurred"):
        super().__init__(message)


class CommentQueryError(HostError):
    """The recent comments query failed."""

    def __init__(self, message: str = "Failed to query recent comments"):
        super().__init__(message)


class PostNotFoundError(HostError):
    """A post referenced by a comment does not exist on the host."""

    def __init__(self, message: str = "Post not found"):
        super().__init__(message)


class LanguageAdapterError(MergedCommentsError):
    """No multilingual plugin API is available."""

    def __init__(self, message: str = "Neither Polylang nor WPML is available"):
        super().__init__(message)


class DataError(MergedCommentsError):
    """Base exception for data-related errors."""

    def __init__(self, message: str = "A data error occurred"):
        super().__init__(message)


class DatabaseError(DataError):
    """Database operation failed."""

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message)


class ConfigError(DataError):
    """Configuration is invalid or missing."""

    def __init__(self, message: str = "Configuration error"):
        super().__init__(message)
