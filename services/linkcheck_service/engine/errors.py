class LinkCheckError(Exception):
    pass


class ResolutionError(LinkCheckError):
    """A raw link target that cannot be turned into an absolute URL."""

    def __init__(self, raw: str, reason: str):
        super().__init__(f"cannot resolve {raw!r}: {reason}")
        self.raw = raw
        self.reason = reason


class ConfigurationError(LinkCheckError, ValueError):
    """Invalid engine configuration; raised before any probing starts."""
