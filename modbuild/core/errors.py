from __future__ import annotations


class BuildError(RuntimeError):
    """Base for every fatal build-time failure."""


class ConfigurationError(BuildError):
    pass


class FetchError(BuildError):
    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ValidationError(BuildError):
    pass
