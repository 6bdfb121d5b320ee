"""Exceptions raised by survbridge."""


class ConfigurationError(ValueError):
    """A model specification, formula or prediction request cannot be honored.

    Raised before any engine is invoked, e.g. when a stratification term sits
    where it cannot be extracted, an engine name is unknown, or a required
    argument is missing.
    """


class FormulaSyntaxError(ConfigurationError):
    """Formula text could not be parsed."""
