"""Exceptions raised by sqrc."""


class ConfigError(ValueError):
    """Invalid render options. Raised before anything is drawn."""


class LogoLoadError(RuntimeError):
    """The logo could not be fetched or decoded."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"failed to load logo {source!r}: {reason}")
        self.source = source
        self.reason = reason
