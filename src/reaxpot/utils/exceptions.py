"""Exceptions raised by ReaxPot parsers and engines."""


class ParseError(Exception):
    """Raised when an ffield or snapshot file cannot be parsed correctly."""
    pass


class DegenerateGeometryError(ValueError):
    """Raised when two atoms coincide (zero or negative interatomic distance)."""
    pass


class NumericalError(ArithmeticError):
    """Raised when a NaN or infinity escapes the numeric guards of an evaluation."""
    pass
