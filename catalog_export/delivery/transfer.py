"""FTP delivery of export files."""

from __future__ import annotations

import ftplib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

from catalog_export.common.errors import TransferError


class TransferMode(str, Enum):
    BINARY = "binary"
    TEXT = "text"


class Transfer(Protocol):
    def send(self, path: Path, mode: TransferMode, destination: str | None) -> None: ...


@dataclass(frozen=True)
class FtpSettings:
    hostname: str
    username: str
    password: str
    directories: dict[str, str]

    @classmethod
    def from_config(cls, transfer_cfg: dict) -> "FtpSettings":
        return cls(
            hostname=transfer_cfg.get("hostname") or "",
            username=transfer_cfg.get("username") or "",
            password=transfer_cfg.get("password") or "",
            directories={key: value or "" for key, value in (transfer_cfg.get("directories") or {}).items()},
        )

    def directory(self, name: str) -> str:
        return self.directories.get(name, "")


class FtpTransfer:
    def __init__(self, settings: FtpSettings, ftp_factory=ftplib.FTP) -> None:
        self.settings = settings
        self._ftp_factory = ftp_factory

    def send(self, path: Path, mode: TransferMode, destination: str | None) -> None:
        if not self.settings.hostname:
            raise TransferError("No FTP hostname configured")
        try:
            ftp = self._ftp_factory(self.settings.hostname)
        except ftplib.all_errors as exc:
            raise TransferError(f"Cannot connect to {self.settings.hostname}: {exc}") from exc
        try:
            ftp.login(self.settings.username, self.settings.password)
            if destination:
                ftp.cwd(destination)
            if mode is TransferMode.BINARY:
                with path.open("rb") as f:
                    ftp.storbinary(f"STOR {path.name}", f)
            else:
                with path.open("rb") as f:
                    ftp.storlines(f"STOR {path.name}", f)
            ftp.quit()
        except ftplib.all_errors as exc:
            ftp.close()
            raise TransferError(f"Cannot put {path.name} to {self.settings.hostname}:{destination or ''}: {exc}") from exc
