"""Repository base class used by all concrete repositories."""
import json
import logging
import os
import tempfile
from typing import Any


class BaseRepository:
    """JSON-file persistence for a single document, the portal's stand-in for
    browser local storage.

    Sub-classes call :meth:`_load` to read the document from disk,
    :meth:`_save` to persist it atomically (write-then-rename, so the file is
    never left half-written) and :meth:`_delete` to remove it.
    """

    def __init__(self, file_path: str) -> None:
        self._path = file_path
        self._log = logging.getLogger(f'gameclub.repository.{type(self).__name__}')

    @property
    def path(self) -> str:
        return self._path

    def _load(self, default: Any) -> Any:
        """Load JSON from *self._path*, returning *default* on missing/corrupt file."""
        if os.path.exists(self._path):
            try:
                with open(self._path, 'r') as fh:
                    return json.load(fh)
            except (json.JSONDecodeError, IOError) as exc:
                self._log.warning("Could not load %s: %s", self._path, exc)
        return default

    def _save(self, data: Any) -> None:
        """Atomically write *data* as JSON to *self._path*."""
        dir_name = os.path.dirname(os.path.abspath(self._path))
        fd, tmp_path = tempfile.mkstemp(dir=dir_name, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w') as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_path, self._path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def _delete(self) -> None:
        try:
            os.unlink(self._path)
        except FileNotFoundError:
            pass
