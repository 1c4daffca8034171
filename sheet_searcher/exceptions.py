"""Exception hierarchy for workbook ingestion and session errors."""


class SheetSearcherError(Exception):
    """Base exception for all sheet searcher errors."""

    def __init__(self, message: str, *args):
        """Initialize error with message."""
        self.message = message
        super().__init__(message, *args)


class WorkbookLoadError(SheetSearcherError):
    """Raised when workbook bytes cannot be decoded."""
    pass


class NoWorkbookLoadedError(SheetSearcherError):
    """Raised when an operation needs a workbook and none is loaded."""
    pass


class SheetNotFoundError(SheetSearcherError):
    """Raised when a sheet name is not part of the loaded workbook."""
    pass


class ColumnNotFoundError(SheetSearcherError):
    """Raised when a column name is not part of the selected sheet."""
    pass
