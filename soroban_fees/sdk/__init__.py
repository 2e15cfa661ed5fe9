"""
SDK adapters for Soroban Fees.

Provides codecs backed by third-party Stellar libraries.
"""

from .stellar_codec import StellarXdrCodec

__all__ = ["StellarXdrCodec"]
