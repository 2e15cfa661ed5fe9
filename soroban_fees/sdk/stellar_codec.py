"""
stellar-sdk backed snapshot codec.

Decodes the XDR payloads of a simulation trace without changing them.
"""

import base64
import binascii
from typing import Tuple

from stellar_sdk import xdr as stellar_xdr

from ..core.codec import DecodedEntry, TransactionResources
from ..core.errors import MalformedEntrySnapshot


def _b64decode(encoded: str, what: str) -> bytes:
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedEntrySnapshot(f"{what} is not valid base64: {e}") from e


class StellarXdrCodec:
    """Codec for Soroban XDR payloads.

    Contract data entries carry their own durability. Contract code and
    classic entries are always persistent.
    """

    def decode_entry(self, encoded: str) -> DecodedEntry:
        """Decode a base64 LedgerEntry.

        Raises:
            MalformedEntrySnapshot: If the payload is not a LedgerEntry
        """
        raw = _b64decode(encoded, "Ledger entry")
        try:
            entry = stellar_xdr.LedgerEntry.from_xdr_bytes(raw)
        except Exception as e:
            raise MalformedEntrySnapshot(f"Cannot decode LedgerEntry: {e}") from e

        is_persistent = True
        if entry.data.type == stellar_xdr.LedgerEntryType.CONTRACT_DATA:
            durability = entry.data.contract_data.durability
            is_persistent = durability == stellar_xdr.ContractDataDurability.PERSISTENT

        # LedgerEntry XDR has no TTL; the normalizer applies the minimum lifetime
        return DecodedEntry(is_persistent=is_persistent, size_bytes=len(raw))

    def event_size(self, encoded: str) -> int:
        """Encoded size of a contract event; system and diagnostic events are free."""
        raw = _b64decode(encoded, "Diagnostic event")
        try:
            diagnostic = stellar_xdr.DiagnosticEvent.from_xdr_bytes(raw)
        except Exception as e:
            raise MalformedEntrySnapshot(f"Cannot decode DiagnosticEvent: {e}") from e

        if diagnostic.event.type != stellar_xdr.ContractEventType.CONTRACT:
            return 0
        return len(diagnostic.event.to_xdr_bytes())

    def decode_transaction_data(self, encoded: str) -> Tuple[TransactionResources, int]:
        """Decode SorobanTransactionData into footprint resources and resource fee."""
        raw = _b64decode(encoded, "Transaction data")
        try:
            data = stellar_xdr.SorobanTransactionData.from_xdr_bytes(raw)
        except Exception as e:
            raise MalformedEntrySnapshot(f"Cannot decode SorobanTransactionData: {e}") from e

        resources = data.resources
        footprint = resources.footprint
        # Protocol 23 renamed read_bytes to disk_read_bytes
        read_bytes = getattr(resources, "read_bytes", None)
        if read_bytes is None:
            read_bytes = resources.disk_read_bytes

        return (
            TransactionResources(
                read_only_entries=len(footprint.read_only),
                read_write_entries=len(footprint.read_write),
                read_bytes=read_bytes.uint32,
                write_bytes=resources.write_bytes.uint32,
            ),
            data.resource_fee.int64,
        )
