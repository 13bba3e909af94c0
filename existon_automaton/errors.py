from __future__ import annotations


class ExistonError(Exception):
    """Base class for every error raised by the automaton core."""


class DimensionMismatch(ExistonError, ValueError):
    """Algebra operation between multivectors of different order (or a wrong coefficient count)."""


class InvalidDimensions(ExistonError, ValueError):
    """Grid construction with an empty/zero extent or a non-positive algebra order."""


class OutOfBounds(ExistonError, IndexError):
    """Coordinate outside the grid extent."""


class EntanglementError(ExistonError, RuntimeError):
    """Entanglement table is not a symmetric one-to-one pairing of real cells."""
