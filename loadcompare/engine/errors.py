"""Run-level errors raised by the load engine."""


class ConfigurationError(ValueError):
    """A target or run cannot start: missing address or credential, bad sizing.

    Subclasses ``ValueError`` so the relay's global handler answers 400.
    """
