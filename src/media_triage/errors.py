class TriageError(Exception):
    """Base class for every failure the session controller reports and stops on."""


class ConfigError(TriageError):
    """Raised when the configuration file cannot be read, parsed, validated or written."""


class ConfigReadError(ConfigError):
    pass


class ConfigParseError(ConfigError):
    pass


class ConfigValidationError(ConfigError, ValueError):
    """Raised when a configured path is empty or missing on disk.

    Attributes:
        field: Dotted name of the offending setting (e.g. 'settings.source_dir').
    """

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field} {reason}")
        self.field = field


class ConfigWriteError(ConfigError):
    pass


class DirectoryReadError(TriageError):
    pass


class RenameError(TriageError):
    pass


class CopyIOError(TriageError):
    pass


class PromptError(TriageError):
    pass
