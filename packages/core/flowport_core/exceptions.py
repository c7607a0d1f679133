"""Flowport exceptions.

Extraction itself never raises for malformed content; these cover the
boundaries around it (parser selection, archive input).
"""


class FlowportError(Exception):
    """Base class for flowport errors."""

    pass


class UnknownParserError(FlowportError):
    """Raised when a parser key is not registered."""

    def __init__(self, key: str, known: list[str]) -> None:
        super().__init__(f"Unknown parser '{key}'. Known parsers: {sorted(known)}")
        self.key = key
        self.known = known


class ArchiveError(FlowportError):
    """Raised when an archive cannot be read."""

    pass


class UnsupportedArchiveError(ArchiveError):
    """Raised when the archive kind is not zip, tar, tar.gz or tgz."""

    pass
