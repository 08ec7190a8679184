"""Metadata record for a group.

The record maps each entry name to the suffix of its live blob. It is
stored as one attribute value on the bucket: JSON, then standard base64,
so the value is safe for any store that only accepts header-like text.
"""

import base64
import binascii
import json
from dataclasses import dataclass, field

from ..errors import MetadataDecodeError

SCHEMA_VERSION = 1


@dataclass
class MetadataRecord:
    """Versioned pointer table of one group.

    ``serial`` is incremented for every version saved. If a save checks
    that stored.serial == record.serial - 1 and the bucket update lands
    cleanly, the saved record is the direct successor of the one read.
    If the bucket update fails but the serial relation still holds, the
    save can be retried without bothering the caller. If the relation no
    longer holds, someone else saved in between and the caller has to
    redo its work.

    Higher level constructs must still confirm the entry they replace is
    the one they read; the Writer does this by comparing its key against
    ``locations[name]``.
    """

    version: int = SCHEMA_VERSION
    serial: int = 0
    locations: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"Version": self.version, "Serial": self.serial, "Locations": dict(self.locations)}

    def encode(self) -> str:
        """Serialize to base64-wrapped JSON text."""
        raw = json.dumps(self.to_dict(), sort_keys=True).encode("utf-8")
        return base64.b64encode(raw).decode("ascii")

    @classmethod
    def from_dict(cls, data: dict) -> "MetadataRecord":
        return cls(
            version=int(data.get("Version", SCHEMA_VERSION)),
            serial=int(data.get("Serial", 0)),
            locations=dict(data.get("Locations") or {}),
        )

    @classmethod
    def decode(cls, text: str) -> "MetadataRecord":
        """Deserialize from base64-wrapped JSON text.

        Raises:
            MetadataDecodeError: If the text is not a valid record
        """
        try:
            raw = base64.b64decode(text.encode("ascii"), validate=True)
            data = json.loads(raw.decode("utf-8"))
        except (binascii.Error, UnicodeError, json.JSONDecodeError) as e:
            raise MetadataDecodeError(f"Invalid metadata record: {e}") from e
        if not isinstance(data, dict):
            raise MetadataDecodeError(f"Invalid metadata record: expected object, got {type(data).__name__}")
        try:
            return cls.from_dict(data)
        except (TypeError, ValueError) as e:
            raise MetadataDecodeError(f"Invalid metadata record: {e}") from e
