"""Opaque scan cursors.

A cursor names the last message a client has seen by its append sequence
number and id. Pages continue strictly after it, so messages appended while a
client is paginating never shift earlier pages the way offsets would.
"""

import base64
import binascii
import json
from dataclasses import dataclass

from tenantchat.common.exceptions import InvalidCursorError

# Largest value a signed 64-bit sequence column can hold.
MAX_SEQ = 2**63 - 1


@dataclass(frozen=True)
class Cursor:
    seq: int
    message_id: str

    def encode(self) -> str:
        raw = json.dumps({"s": self.seq, "id": self.message_id}, separators=(",", ":"))
        return base64.urlsafe_b64encode(raw.encode()).decode().rstrip("=")

    @classmethod
    def decode(cls, token: str) -> "Cursor":
        padded = token + "=" * (-len(token) % 4)
        try:
            data = json.loads(base64.urlsafe_b64decode(padded.encode()))
            seq = data["s"]
            message_id = data["id"]
        except (binascii.Error, ValueError, TypeError, KeyError) as exc:
            raise InvalidCursorError() from exc
        if not isinstance(seq, int) or isinstance(seq, bool) or not 0 <= seq <= MAX_SEQ:
            raise InvalidCursorError()
        if not isinstance(message_id, str) or not message_id:
            raise InvalidCursorError()
        return cls(seq=seq, message_id=message_id)
