"""Exceptions raised by the LTTP ROM patch engine.

Every failure is terminal for the current generation request. Callers must
discard the in-memory ROM buffer on any of these rather than persist it.
"""


class PatchError(Exception):
    """Base class for all ROM patching failures."""
    pass


class TruncatedInput(PatchError):
    """Raised when a stream ends in the middle of a variable-length integer."""
    pass


class MalformedInput(PatchError):
    """Raised on bad magic bytes, inconsistent declared sizes or a bad header."""
    pass


class IntegrityFailure(PatchError):
    """Raised when a CRC32 check does not match."""
    pass


class BoundsViolation(PatchError):
    """Raised when a read or write would fall outside its buffer."""
    pass


class UnsupportedFormat(PatchError):
    """Raised for sprite containers that are neither ZSPR nor legacy .spr."""
    pass


class RomValidationError(MalformedInput):
    """Raised when the source cartridge image has an unexpected size."""

    def __init__(self, size: int, expected: int):
        self.size = size
        self.expected = expected
        super().__init__(
            f"ROM size is {size:,} bytes. Expected {expected:,} bytes "
            f"(Japanese v1.0 ALttP, headerless)."
        )
