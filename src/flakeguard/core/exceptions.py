"""Exception types raised by flakeguard."""


class FlakeguardError(Exception):
    """Base class for all flakeguard errors."""


class ExportError(FlakeguardError, OSError):
    """An artifact could not be written to its destination."""


class DataImportError(FlakeguardError, ValueError):
    """A data export could not be read back into the store."""


class FormNotReadyError(FlakeguardError, TimeoutError):
    """Form fields did not become visible and enabled in time."""
