"""Exception and warning types raised by the inner-iteration engine."""


class InnerTransportError(Exception):
    """Base class for all inner_transport errors."""


class ConfigurationError(InnerTransportError, ValueError):
    """Invalid problem setup, detected before any iteration starts."""


class ConvergenceWarning(UserWarning):
    """Inner iterations hit the iteration cap without meeting the tolerance.

    Recoverable: the solver still stores and returns its best estimate.
    """
