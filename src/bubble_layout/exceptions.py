class InvalidItemDataError(Exception):
    """Item data failed validation."""
    def __init__(self, message="Unable to validate item data."):
        super().__init__(message)

class UnsupportedFileTypeError(Exception):
    """Unsupported dataset file type."""
    def __init__(self, message="File type not supported."):
        super().__init__(message)

class UnknownMetricModeError(Exception):
    """Metric mode is neither 'frequency' nor 'spending'."""
    def __init__(self, message="Unknown metric mode."):
        super().__init__(message)
