from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from pathlib import Path
from typing import Callable, Generic, TypeVar

from .errors import AssetLoadError, SiteError
from .highlight import load_syntax_set, load_theme_set
from .render import favicon_link, guess_favicon_mime

logger = logging.getLogger(__name__)

T = TypeVar("T")


def cache_key(path: Path) -> Path:
    return Path(path).resolve()


class AssetCache(Generic[T]):
    """Load-once cache keyed by resolved path.

    The first caller for a path runs the loader; concurrent callers for the
    same path wait for that result instead of loading again. Failures stay
    cached for the lifetime of the cache.
    """

    def __init__(self, name: str = "asset") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._entries: dict[Path, Future] = {}
        self.loads = 0

    def get_or_load(self, path: Path, loader: Callable[[Path], T]) -> T:
        key = cache_key(path)
        with self._lock:
            future = self._entries.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._entries[key] = future
                self.loads += 1
        if owner:
            logger.debug("loading %s %s", self.name, key)
            try:
                value = loader(key)
            except SiteError as exc:
                future.set_exception(exc)
            except Exception as exc:
                future.set_exception(AssetLoadError(f"cannot load {self.name}: {exc}", key))
            except BaseException as exc:
                future.set_exception(exc)
                raise
            else:
                future.set_result(value)
        return future.result()

    def __contains__(self, path: Path) -> bool:
        with self._lock:
            return cache_key(path) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def load_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise AssetLoadError(f"cannot read file: {exc}", path) from exc


def load_favicon(path: Path) -> str:
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise AssetLoadError(f"cannot read favicon: {exc}", path) from exc
    return favicon_link(data, guess_favicon_mime(path))


class AssetStore:
    """The shared, build-scoped set of asset caches handed to every worker."""

    def __init__(self) -> None:
        self.templates: AssetCache[str] = AssetCache("template")
        self.stylesheets: AssetCache[str] = AssetCache("stylesheet")
        self.favicons: AssetCache[str] = AssetCache("favicon")
        self.themes: AssetCache[dict] = AssetCache("theme set")
        self.syntaxes: AssetCache[dict] = AssetCache("syntax set")

    def template(self, path: Path) -> str:
        return self.templates.get_or_load(path, load_text)

    def stylesheet(self, path: Path) -> str:
        return self.stylesheets.get_or_load(path, load_text)

    def favicon(self, path: Path) -> str:
        return self.favicons.get_or_load(path, load_favicon)

    def theme_set(self, theme_dir: Path) -> dict:
        return self.themes.get_or_load(theme_dir, load_theme_set)

    def syntax_set(self, syntaxes_dir: Path) -> dict:
        return self.syntaxes.get_or_load(syntaxes_dir, load_syntax_set)

    def theme(self, theme_dir: Path, name: str):
        themes = self.theme_set(theme_dir)
        if name not in themes:
            raise AssetLoadError(f'syntax theme "{name}" does not exist', theme_dir)
        return themes[name]
