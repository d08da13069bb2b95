"""Domain errors and failure typing.

Every error states whether it aborts the run. Fatal errors short-circuit the
remaining phases and go straight to finalization; the rest are logged and the
run carries on.
"""


class ExportError(Exception):
    """Base class for export failures."""

    error_code = "EXPORT_ERROR"
    fatal = True


class ConfigError(ExportError):
    """Raised for invalid or missing configuration, before any output is opened."""

    error_code = "CONFIG_ERROR"


class StoreConnectionError(ExportError):
    """Raised when the catalog database cannot be reached."""

    error_code = "CONNECTION_ERROR"


class QueryError(ExportError):
    """Raised when a catalog query fails to execute or fetch."""

    error_code = "QUERY_ERROR"


class ScopeError(ExportError):
    """Raised when the requested library id does not exist."""

    error_code = "SCOPE_ERROR"


class DateResolutionError(ExportError):
    """Raised when no usable cutoff date can be derived for an incremental run."""

    error_code = "DATE_RESOLUTION_ERROR"


class MalformedRecordError(ExportError):
    error_code = "MALFORMED_RECORD"
    fatal = False


class TransferError(ExportError):
    error_code = "TRANSFER_ERROR"
    fatal = False


class LedgerWriteError(ExportError):
    error_code = "LEDGER_WRITE_ERROR"
    fatal = False
