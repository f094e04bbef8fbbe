"""
Instance Stores

The store is an explicit handle passed to the generator and verifier,
never an ambient path. Two implementations share one contract:

- MemoryStore: dict-backed, for tests and in-process pipelines
- DirectoryStore: one canonical JSON file per instance plus a manifest

Records are immutable once written: putting the same id again is a
no-op when the bytes match and a WriteError otherwise. Directory writes
go through a temporary file and an atomic rename, so a failed write
never leaves a partial record behind.
"""

import json
import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from .certificate import Certificate
from .core.canonical_json import canonical_bytes
from .core.errors import (
    CorruptInstance,
    InstanceNotFound,
    MalformedCertificate,
    WriteError,
)
from .instance import Instance


logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

MANIFEST_NAME = "manifest.json"
INSTANCE_DIR = "instances"


def is_safe_id(instance_id: str) -> bool:
    """Ids double as file names, so only a conservative alphabet is allowed."""
    return isinstance(instance_id, str) and bool(_SAFE_ID.match(instance_id))


def _decode(raw: bytes, what: str) -> Any:
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptInstance(f"{what} is not valid JSON: {e}") from e


class InstanceStore(ABC):
    """Abstract instance store."""

    @abstractmethod
    def _read(self, instance_id: str) -> Optional[bytes]:
        """Raw bytes of a stored instance, or None if absent."""

    @abstractmethod
    def _write(self, instance_id: str, data: bytes) -> None:
        """Store raw bytes for a new instance."""

    @abstractmethod
    def _read_manifest(self) -> Optional[bytes]:
        """Raw manifest bytes, or None if no manifest was written."""

    @abstractmethod
    def _write_manifest(self, data: bytes) -> None:
        """Replace the manifest."""

    @abstractmethod
    def ids(self) -> List[str]:
        """Sorted ids of all stored instances."""

    def describe(self) -> str:
        return type(self).__name__

    def __contains__(self, instance_id: object) -> bool:
        return (
            isinstance(instance_id, str)
            and is_safe_id(instance_id)
            and self._read(instance_id) is not None
        )

    def __iter__(self) -> Iterator[Instance]:
        for instance_id in self.ids():
            yield self.get(instance_id)

    def __len__(self) -> int:
        return len(self.ids())

    def put(self, instance: Instance) -> None:
        """
        Write an instance.

        Raises:
            WriteError: if the id is unsafe, already holds different
                content, or the underlying write fails
        """
        if not is_safe_id(instance.id):
            raise WriteError(f"refusing to store instance with unsafe id {instance.id!r}")
        data = canonical_bytes(instance.to_canonical())
        existing = self._read(instance.id)
        if existing is not None:
            if existing == data:
                logger.debug("Instance %s already stored, unchanged", instance.id)
                return
            raise WriteError(
                f"instance '{instance.id}' already exists with different content; "
                "stored instances are immutable"
            )
        self._write(instance.id, data)
        logger.debug("Stored instance %s (%d bytes)", instance.id, len(data))

    def get(self, instance_id: str) -> Instance:
        """
        Load an instance by id.

        Raises:
            InstanceNotFound: if no such instance exists
            CorruptInstance: if the stored record is invalid
        """
        raw = self._read(instance_id) if is_safe_id(instance_id) else None
        if raw is None:
            raise InstanceNotFound(instance_id, self.describe())
        instance = Instance.from_dict(_decode(raw, f"instance '{instance_id}'"))
        if instance.id != instance_id:
            raise CorruptInstance(
                f"record stored as '{instance_id}' carries id '{instance.id}'"
            )
        return instance

    def get_bytes(self, instance_id: str) -> bytes:
        """Exact stored bytes, for byte-level reproducibility checks."""
        raw = self._read(instance_id) if is_safe_id(instance_id) else None
        if raw is None:
            raise InstanceNotFound(instance_id, self.describe())
        return raw

    def put_manifest(self, manifest: Dict[str, Any]) -> None:
        self._write_manifest(canonical_bytes(manifest))

    def get_manifest(self) -> Optional[Dict[str, Any]]:
        raw = self._read_manifest()
        if raw is None:
            return None
        data = _decode(raw, "manifest")
        if not isinstance(data, dict):
            raise CorruptInstance("manifest must be a JSON object")
        return data


class MemoryStore(InstanceStore):
    """In-memory store holding the same canonical bytes a directory would."""

    def __init__(self):
        self._records: Dict[str, bytes] = {}
        self._manifest: Optional[bytes] = None

    def _read(self, instance_id: str) -> Optional[bytes]:
        return self._records.get(instance_id)

    def _write(self, instance_id: str, data: bytes) -> None:
        self._records[instance_id] = data

    def _read_manifest(self) -> Optional[bytes]:
        return self._manifest

    def _write_manifest(self, data: bytes) -> None:
        self._manifest = data

    def ids(self) -> List[str]:
        return sorted(self._records)


class DirectoryStore(InstanceStore):
    """
    Filesystem store.

    Layout::

        <root>/manifest.json
        <root>/instances/<instance_id>.json
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.instance_dir = self.root / INSTANCE_DIR

    def describe(self) -> str:
        return f"store {self.root}"

    def _path(self, instance_id: str) -> Path:
        return self.instance_dir / f"{instance_id}.json"

    def _read_file(self, path: Path) -> Optional[bytes]:
        try:
            return path.read_bytes()
        except (FileNotFoundError, NotADirectoryError):
            return None

    def _atomic_write(self, path: Path, data: bytes) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise WriteError(f"cannot write to {path.parent}: {e}") from e
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise WriteError(f"cannot write {path}: {e}") from e

    def _read(self, instance_id: str) -> Optional[bytes]:
        return self._read_file(self._path(instance_id))

    def _write(self, instance_id: str, data: bytes) -> None:
        self._atomic_write(self._path(instance_id), data)

    def _read_manifest(self) -> Optional[bytes]:
        return self._read_file(self.root / MANIFEST_NAME)

    def _write_manifest(self, data: bytes) -> None:
        self._atomic_write(self.root / MANIFEST_NAME, data)

    def ids(self) -> List[str]:
        if not self.instance_dir.is_dir():
            return []
        return sorted(
            p.stem for p in self.instance_dir.glob("*.json")
            if is_safe_id(p.stem)
        )


def load_instance(path: Union[str, Path]) -> Instance:
    """
    Load a single instance file.

    Raises:
        InstanceNotFound: if the file does not exist
        CorruptInstance: if the record is invalid
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        raise InstanceNotFound(path.stem, str(path.parent)) from None
    return Instance.from_dict(_decode(raw, str(path)))


def load_certificate(path: Union[str, Path]) -> Certificate:
    """
    Load a certificate file.

    Raises:
        MalformedCertificate: if the file is missing, not JSON, or not
            a certificate record
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise MalformedCertificate(f"cannot read certificate {path}: {e}") from e
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedCertificate(f"certificate {path} is not valid JSON: {e}") from e
    return Certificate.from_dict(data)
