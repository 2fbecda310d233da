"""
Error Taxonomy
==============

Precondition violations raised by the numeric core and the network.

All of them signal a caller bug (operands built with the wrong shapes,
mismatched networks, ...), so they are raised immediately at the call that
detects them and no partial result is ever produced.

Classes:
    GTADriveError          - Base class for every project error
    ShapeMismatchError     - Arithmetic / matmul operands incompatible
    LengthMismatchError    - Permutation or paired data of the wrong length
    BoundsViolationError   - Row / window indices outside the matrix
    StructureMismatchError - Crossover between networks of different layout
"""


class GTADriveError(Exception):
    """Base class for all gtadrive errors."""


class ShapeMismatchError(GTADriveError, ValueError):
    """Operands have shapes that fit none of the supported cases."""


class LengthMismatchError(GTADriveError, ValueError):
    """A sequence does not have the length the operation requires."""


class BoundsViolationError(GTADriveError, IndexError):
    """Indices fall outside the valid range of the matrix."""


class StructureMismatchError(GTADriveError, ValueError):
    """Two networks do not share dimensions and activation layout."""
