from __future__ import annotations

from pathlib import Path
from typing import Optional

EX_SOFTWARE = 64
EX_IOERR = 74
EX_CONFIG = 78


class SiteError(Exception):
    exit_code = EX_SOFTWARE

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f'"{self.path}": {self.message}'


class ConfigError(SiteError):
    exit_code = EX_CONFIG


class MissingRequiredField(ConfigError):
    pass


class InvalidPath(ConfigError):
    pass


class MalformedDocument(ConfigError):
    pass


class MissingPageInfo(ConfigError):
    pass


class AssetLoadError(SiteError):
    pass


class RenderError(SiteError):
    pass


class OutputError(SiteError):
    exit_code = EX_IOERR
