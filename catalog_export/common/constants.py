"""Application constants."""

USER_AGENT = "catalog-export/1.2 (+library systems; contact: configured-email)"
PHASES = (
    "bibs-mfhd",
    "items",
    "authorities",
)
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
MODE_LAST_FULL = ("by-last-full", "lastfull")
MODE_LAST_INCREMENTAL = ("by-last-incremental", "lastincr")
STRICT_DATE_PATTERN = r"^(19|20)\d\d-(0[1-9]|1[012])-(0[1-9]|[12][0-9]|3[01])$"
ITEM_FIELD_DELIMITER = "|"
ITEM_FIELDS = (
    "bib_id",
    "mfhd_id",
    "item_id",
    "status_label",
    "item_type",
    "enumeration",
    "chronology",
    "perm_location_label",
    "temp_location_label",
    "barcode",
    "barcode_status",
)
JSON_LOG_FIELDS = (
    "timestamp",
    "level",
    "run_id",
    "phase",
    "category",
    "event",
    "status",
    "rows_out",
    "error_code",
    "path",
    "message",
)
