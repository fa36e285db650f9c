"""Read-only checks against the deployment target."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class CheckoutFacts:
    """Facts about the checkout that decide which steps apply."""

    path: Path
    has_backend_manifest: bool = False
    has_frontend_manifest: bool = False
    has_cache_dir: bool = False


class CheckoutProbe:
    """Inspects the target path without touching it."""

    def __init__(
        self,
        backend_manifest: str = "",
        frontend_manifest: str = "package.json",
        cache_dir: str = "public/cache/translate",
    ) -> None:
        self.backend_manifest = backend_manifest
        self.frontend_manifest = frontend_manifest
        self.cache_dir = cache_dir

    def collect(self, path: Path) -> CheckoutFacts:
        """Collect facts about the checkout at `path`.

        An empty manifest name counts as present, so the related step always
        runs.
        """
        path = Path(path)
        return CheckoutFacts(
            path=path,
            has_backend_manifest=self._has_file(path, self.backend_manifest),
            has_frontend_manifest=self._has_file(path, self.frontend_manifest),
            has_cache_dir=self.cache_path(path).is_dir(),
        )

    def cache_path(self, path: Path) -> Path:
        return Path(path) / self.cache_dir

    @staticmethod
    def _has_file(path: Path, name: str) -> bool:
        if not name:
            return True
        return (path / name).is_file()
