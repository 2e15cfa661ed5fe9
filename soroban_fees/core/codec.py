"""
Snapshot codec interface.

The normalizer never parses XDR itself. It asks a codec to turn encoded
ledger entries, events and transaction data into the few facts fee
computation needs.
"""

import base64
import binascii
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

from .errors import MalformedEntrySnapshot


@dataclass(frozen=True)
class DecodedEntry:
    """Fee-relevant facts about one ledger-entry snapshot."""
    is_persistent: bool
    size_bytes: int
    live_until_ledger: Optional[int] = None  # None when the snapshot carries no TTL


@dataclass(frozen=True)
class TransactionResources:
    """Declared resources of a transaction's footprint."""
    read_only_entries: int
    read_write_entries: int
    read_bytes: int
    write_bytes: int


class SnapshotCodec(Protocol):
    """Decoder for the encoded pieces of a simulation trace."""

    def decode_entry(self, encoded: str) -> DecodedEntry:
        """Decode a ledger-entry snapshot.

        Raises:
            MalformedEntrySnapshot: If the snapshot cannot be decoded
        """
        ...

    def event_size(self, encoded: str) -> int:
        """Byte length of a contract event; 0 for non-contract events."""
        ...

    def decode_transaction_data(self, encoded: str) -> Tuple[TransactionResources, int]:
        """Decode transaction data into its resources and declared resource fee."""
        ...


def encoded_length(encoded: str) -> int:
    """Byte length of a base64 payload.

    Raises:
        MalformedEntrySnapshot: If the payload is not valid base64
    """
    try:
        return len(base64.b64decode(encoded, validate=True))
    except (binascii.Error, ValueError) as e:
        raise MalformedEntrySnapshot(f"Invalid base64 payload: {e}") from e
