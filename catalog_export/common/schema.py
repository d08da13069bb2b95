"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from catalog_export.common.errors import ConfigError

DIALECTS = ("oracle", "sqlite")
NOTIFICATION_METHODS = ("none", "mail", "webhook")
TRANSFER_DIRECTORY_KEYS = {"bibs", "mfhd", "auth", "item", "log"}


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _validate_database(cfg: dict, allow_unknown: bool) -> None:
    known = {"dialect", "schema", "dsn", "user", "password", "path", "record_encoding", "arraysize"}
    _assert_required_keys(cfg, {"dialect"}, "database")
    _assert_no_unknown_keys(cfg, known, "database", allow_unknown)

    dialect = cfg["dialect"]
    if dialect not in DIALECTS:
        raise ConfigError(f"database.dialect must be one of {', '.join(DIALECTS)}, got {dialect!r}")
    if dialect == "oracle":
        _assert_required_keys(cfg, {"schema", "dsn", "user", "password"}, "database (oracle)")
    else:
        _assert_required_keys(cfg, {"path"}, "database (sqlite)")
    arraysize = cfg.get("arraysize", 500)
    if not isinstance(arraysize, int) or arraysize < 1:
        raise ConfigError("database.arraysize must be a positive integer")


def _validate_transfer(cfg: dict, allow_unknown: bool) -> None:
    _assert_required_keys(cfg, {"hostname", "username", "password", "directories"}, "transfer")
    _assert_no_unknown_keys(cfg, {"hostname", "username", "password", "directories"}, "transfer", allow_unknown)
    directories = cfg["directories"] or {}
    if not isinstance(directories, dict):
        raise ConfigError("transfer.directories must be a mapping")
    _assert_no_unknown_keys(directories, TRANSFER_DIRECTORY_KEYS, "transfer.directories", allow_unknown)


def _validate_notification(cfg: dict, allow_unknown: bool) -> None:
    known = {"method", "recipients", "sender", "smtp_host", "smtp_port", "webhook_url"}
    _assert_required_keys(cfg, {"method"}, "notification")
    _assert_no_unknown_keys(cfg, known, "notification", allow_unknown)

    method = cfg["method"]
    if method not in NOTIFICATION_METHODS:
        raise ConfigError(
            f"notification.method must be one of {', '.join(NOTIFICATION_METHODS)}, got {method!r}"
        )
    if method == "mail" and not cfg.get("recipients"):
        raise ConfigError("notification.recipients is required for method=mail")
    if method == "webhook" and not cfg.get("webhook_url"):
        raise ConfigError("notification.webhook_url is required for method=webhook")


def validate_export_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"org_id", "output", "database", "transfer", "notification"}
    _assert_required_keys(cfg, top_required, "export config")
    _assert_no_unknown_keys(cfg, top_required, "export config", allow_unknown)

    if not str(cfg["org_id"] or "").strip():
        raise ConfigError("org_id must be a non-empty string")
    _assert_required_keys(cfg["output"], {"directory"}, "output")
    _assert_no_unknown_keys(cfg["output"], {"directory"}, "output", allow_unknown)
    _validate_database(cfg["database"], allow_unknown)
    _validate_transfer(cfg["transfer"], allow_unknown)
    _validate_notification(cfg["notification"], allow_unknown)

    return cfg
