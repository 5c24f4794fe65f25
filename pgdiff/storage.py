"""
storage
=======

Snapshot persistence between ``pgdiff start`` and ``pgdiff end``.

One snapshot file per correlation key, stored as::

    <snapshot_dir>/<prefix>.<key>.json

The key is encoded with :func:`~pgdiff.utils.encode_key`, so distinct keys
never share a file. A file is created exactly once: a second ``start`` for
the same key is refused rather than silently overwriting the baseline of a
measurement that is still running.
"""

from __future__ import annotations

from pathlib import Path

from .errors import FormatError, PreconditionViolation
from .log import get_logger
from .snapshot import Snapshot, deserialize, serialize
from .utils import encode_key

log = get_logger("storage")

DEFAULT_PREFIX = "dcf"


class SnapshotStore:
    """Keyed snapshot files in one directory."""

    def __init__(self, directory: Path | str = ".", prefix: str = DEFAULT_PREFIX) -> None:
        self.directory = Path(directory)
        self.prefix = prefix

    def path_for(self, key: str) -> Path:
        return self.directory / f"{self.prefix}.{encode_key(key)}.json"

    def exists(self, key: str) -> bool:
        return self.path_for(key).exists()

    def ensure_absent(self, key: str) -> None:
        """Raise :class:`PreconditionViolation` if *key* already has a snapshot."""
        path = self.path_for(key)
        if path.exists():
            raise PreconditionViolation(f"Snapshot file already exists: {path}")

    def save(self, key: str, snapshot: Snapshot) -> Path:
        """Write *snapshot* for *key*; the file must not exist yet.

        Returns
        -------
        pathlib.Path
            The file written.

        Raises
        ------
        PreconditionViolation
            If a snapshot already exists for *key*.
        FormatError
            If the file cannot be written.
        """
        path = self.path_for(key)
        payload = serialize(snapshot)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("xb") as handle:
                handle.write(payload)
        except FileExistsError as e:
            raise PreconditionViolation(f"Snapshot file already exists: {path}") from e
        except OSError as e:
            raise FormatError(f"Could not write snapshot file {path}: {e}") from e
        log.info("snapshot.saved", path=str(path), tables=len(snapshot.tables))
        return path

    def load(self, key: str) -> Snapshot:
        """Read the snapshot stored for *key*.

        Raises
        ------
        FormatError
            If the file is missing, unreadable or malformed.
        """
        path = self.path_for(key)
        try:
            data = path.read_bytes()
        except FileNotFoundError as e:
            raise FormatError(f"No snapshot for key {key!r}: {path} does not exist (run start first)") from e
        except OSError as e:
            raise FormatError(f"Could not read snapshot file {path}: {e}") from e
        try:
            snapshot = deserialize(data)
        except FormatError as e:
            raise FormatError(f"{path}: {e}") from e
        log.info("snapshot.loaded", path=str(path), tables=len(snapshot.tables))
        return snapshot

    def discard(self, key: str) -> None:
        """Remove the snapshot for *key* if present."""
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise FormatError(f"Could not remove snapshot file {path}: {e}") from e
        log.info("snapshot.discarded", path=str(path))
