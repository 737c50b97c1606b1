"""Exception types raised by adcmesh.

Every failure surfaced to a caller derives from :class:`MeshError` so that
applications can catch the whole family in one place. None of these are
retried internally.
"""


class MeshError(Exception):
    """Base class for all mesh errors."""


class MeshConfigurationError(MeshError):
    """No filename set, unsupported or undetectable format, bad settings."""


class MeshNotFoundError(MeshError, LookupError):
    """Missing file, unknown identifier or out-of-range storage position."""


class MalformedRecordError(MeshError, ValueError):
    """A record does not match the grammar of the active format.

    Attributes:
        filename: File being parsed, if known
        line_number: 1-based line number of the offending record, if known
    """

    def __init__(self, message: str, filename: str = None, line_number: int = None):
        self.filename = filename
        self.line_number = line_number
        location = ""
        if filename is not None and line_number is not None:
            location = f" ({filename}, line {line_number})"
        elif filename is not None:
            location = f" ({filename})"
        super().__init__(f"{message}{location}")


class ExternalLibraryError(MeshError):
    """A netCDF, projection or shapefile library call failed."""


class MeshInvariantError(MeshError):
    """Element arity, ragged fill or derived-structure state violation."""
