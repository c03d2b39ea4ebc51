"""
Propagator Errors and Warnings

Fatal conditions are exceptions. Recoverable conditions are ``warnings``
categories, so callers can filter them, escalate them to errors, or assert on
them in tests.
"""


class PropagatorError(Exception):
    """Base class for propagation errors."""


class InvalidElements(PropagatorError, ValueError):
    """The element set cannot be propagated (bad range, non-finite value, bad text)."""


class PropagationError(PropagatorError, RuntimeError):
    """Perturbed elements left the domain in which the theory is defined."""


class KeplerConvergenceError(PropagationError):
    """Raised instead of a ConvergenceFailure warning when a session runs in strict mode."""


class PropagatorWarning(RuntimeWarning):
    """Base class for recoverable propagation conditions."""


class ConvergenceFailure(PropagatorWarning):
    """Kepler iteration hit its cap before meeting tolerance; the last estimate was used."""


class DecayedOrbit(PropagatorWarning):
    """Perigee is at or below 98 km, so the drag-shape floor of 20 km is in use."""
