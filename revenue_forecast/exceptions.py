"""Exception types raised by the forecasting engine.

Caller mistakes (bad history, bad options) derive from ``ValueError`` so they
can be handled like any other argument error.  ``ModelFitError`` marks an
unexpected numerical condition inside the regression and is handled by the
engine itself, which falls back to the seasonal-naive forecast.
"""


class ForecastError(Exception):
    """Base class for all forecasting errors."""


class InvalidInputError(ForecastError, ValueError):
    """The historical revenue series is malformed."""


class InvalidConfigError(ForecastError, ValueError):
    """A configuration option is out of range."""


class ModelFitError(ForecastError, RuntimeError):
    """The regularised normal equations could not be solved."""
