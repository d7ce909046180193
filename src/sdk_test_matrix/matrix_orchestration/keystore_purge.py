"""Removal of persisted enrollment and key-value store state."""

from __future__ import annotations

import glob
import logging
import shutil
from pathlib import Path

from sdk_test_matrix.configuration.runtime_settings import KeystoreSettings

LOGGER = logging.getLogger(__name__)


class KeystorePurger:
    """Deletes authentication state between TLS iterations unless persistence is requested."""

    def __init__(self, settings: KeystoreSettings) -> None:
        self._settings = settings

    @property
    def persist(self) -> bool:
        return self._settings.persist

    def purge_unless_persisted(self) -> list[Path]:
        if self._settings.persist:
            LOGGER.info("SDK_KEYSTORE_PERSIST is set; keeping enrollment data")
            return []
        return self.purge()

    def purge(self) -> list[Path]:
        """Remove every match of the purge patterns; paths that cannot be removed are logged."""
        removed: list[Path] = []
        for pattern in self._settings.purge_patterns:
            for match in sorted(glob.glob(pattern)):
                path = Path(match)
                try:
                    if path.is_dir() and not path.is_symlink():
                        shutil.rmtree(path)
                    else:
                        path.unlink()
                except OSError as exc:
                    LOGGER.warning("cannot remove %s: %s", path, exc)
                    continue
                removed.append(path)
        if removed:
            LOGGER.info("removed %s", ", ".join(str(path) for path in removed))
        return removed
