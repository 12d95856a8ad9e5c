"""JSON file persistence for the record store."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

from quorumvault.storage.domains import RECORD_TYPES
from quorumvault.storage.store import RecordStore

LOGGER = logging.getLogger(__name__)

FORMAT_VERSION = 1


class JsonFileStore(RecordStore):
    """Record store that snapshots itself to a JSON document on ``save()``."""

    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__()
        self.path = Path(path)

    def to_document(self) -> Dict[str, Any]:
        """Return the whole store as a JSON-serialisable document."""
        return {
            "version": FORMAT_VERSION,
            "domains": {
                domain: [record.to_payload() for record in self.values(domain)]
                for domain in self.domains()
            },
        }

    def save(self) -> None:
        """Write the snapshot, replacing the previous file in one rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".quorumvault-", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                json.dump(self.to_document(), fp, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            os.unlink(tmp_name)
            raise
        LOGGER.debug("Saved state to %s", self.path)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "JsonFileStore":
        """Open ``path``; a missing file yields an empty store."""
        store = cls(path)
        if not store.path.exists():
            return store

        with open(store.path, "r", encoding="utf-8") as fp:
            document = json.load(fp)

        version = document.get("version")
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported state file version {version!r} in {store.path}")

        for domain, payloads in document.get("domains", {}).items():
            record_type = RECORD_TYPES.get(domain)
            if record_type is None:
                raise ValueError(f"Unknown record domain {domain!r} in {store.path}")
            for payload in payloads:
                store.insert(domain, record_type.from_payload(payload))
        LOGGER.debug("Loaded state from %s", store.path)
        return store


__all__ = ["JsonFileStore", "FORMAT_VERSION"]
