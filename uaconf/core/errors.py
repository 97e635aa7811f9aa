from pathlib import Path

from uaconf.core.validation import Violation


class ConfigError(Exception):
    """Base class for every failure raised while saving or loading a configuration."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class ConfigIOError(ConfigError):
    """The file could not be created, opened, read or fully written."""


class ConfigParseError(ConfigError):
    """The file content is not a document matching the configuration schema."""


class ConfigValidationError(ConfigError):
    """
    The configuration breaks one or more invariants.
    Every detected violation is carried, not only the first one.
    """

    def __init__(self, violations: list[Violation], path: Path | None = None) -> None:
        lines = [str(v) for v in violations]
        super().__init__(
            "Server configuration is invalid:\n  " + "\n  ".join(lines),
            path=path,
        )
        self.violations = violations
