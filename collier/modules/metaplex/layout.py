"""
Metaplex / SPL Binary Layouts
=============================
Pure Borsh-style (de)serialization for the two account kinds Collier reads
and the one instruction it writes.

Metadata account (token-metadata v1):

    key                      u8        (4 = MetadataV1)
    update_authority         [u8; 32]
    mint                     [u8; 32]
    name                     u32 len + bytes   (max 32, NUL padded)
    symbol                   u32 len + bytes   (max 10, NUL padded)
    uri                      u32 len + bytes   (max 200, NUL padded)
    seller_fee_basis_points  u16
    creators                 Option<Vec<Creator>>   (u8 tag, u32 count)
        address              [u8; 32]
        verified             bool
        share                u8
    primary_sale_happened    bool
    is_mutable               bool
    ... (trailing optional fields, ignored)

SPL token account: mint [32] | owner [32] | amount u64 | ... (165 bytes)
"""

import struct
from dataclasses import dataclass
from typing import List, Optional

from solders.pubkey import Pubkey

from collier.shared.system.errors import DecodeError

# =============================================================================
# SCHEMA CONSTANTS
# =============================================================================

METADATA_KEY_V1 = 4

KEY_SIZE = 1
PUBKEY_SIZE = 32
STRING_LEN_PREFIX_SIZE = 4
MAX_NAME_LENGTH = 32
MAX_SYMBOL_LENGTH = 10
MAX_URI_LENGTH = 200
SELLER_FEE_SIZE = 2
OPTION_TAG_SIZE = 1
VEC_LEN_PREFIX_SIZE = 4
CREATOR_SIZE = PUBKEY_SIZE + 1 + 1
MAX_CREATOR_LIMIT = 5
MAX_SELLER_FEE_BASIS_POINTS = 10_000

# Byte offset of creators[0].address, assuming NUL-padded strings at full capacity
CREATOR_FILTER_OFFSET = (
    KEY_SIZE
    + PUBKEY_SIZE  # update authority
    + PUBKEY_SIZE  # mint
    + STRING_LEN_PREFIX_SIZE + MAX_NAME_LENGTH
    + STRING_LEN_PREFIX_SIZE + MAX_SYMBOL_LENGTH
    + STRING_LEN_PREFIX_SIZE + MAX_URI_LENGTH
    + SELLER_FEE_SIZE
    + OPTION_TAG_SIZE  # creators present
    + VEC_LEN_PREFIX_SIZE  # creators count
)

TOKEN_ACCOUNT_SIZE = 165
TOKEN_ACCOUNT_STATE_OFFSET = 108

UPDATE_METADATA_ACCOUNT_IX = 1


# =============================================================================
# RECORDS
# =============================================================================

@dataclass
class Creator:
    address: str
    verified: bool
    share: int


@dataclass
class MetadataRecord:
    """Decoded metadata account. String fields keep their raw NUL padding."""
    metadata_address: Optional[str]
    update_authority: str
    mint_address: str
    name: str
    symbol: str
    uri: str
    seller_fee_basis_points: int
    creators: Optional[List[Creator]]
    primary_sale_happened: bool
    is_mutable: bool

    @property
    def clean_name(self) -> str:
        return self.name.rstrip("\x00")

    @property
    def clean_symbol(self) -> str:
        return self.symbol.rstrip("\x00")

    @property
    def clean_uri(self) -> str:
        return self.uri.rstrip("\x00")

    def shares_valid(self) -> bool:
        """Creator shares must sum to 100 whenever creators are present."""
        if not self.creators:
            return True
        return sum(c.share for c in self.creators) == 100


@dataclass
class TokenAccount:
    mint: str
    owner: str
    amount: int


# =============================================================================
# DECODING
# =============================================================================

class _Reader:
    """Cursor over a byte buffer; every read is bounds-checked."""

    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.offset = 0

    def take(self, size: int, what: str) -> bytes:
        end = self.offset + size
        if end > len(self.data):
            raise DecodeError(
                f"Truncated buffer reading {what}: need {end} bytes, have {len(self.data)}"
            )
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def u8(self, what: str) -> int:
        return self.take(1, what)[0]

    def u16(self, what: str) -> int:
        return struct.unpack("<H", self.take(2, what))[0]

    def u32(self, what: str) -> int:
        return struct.unpack("<I", self.take(4, what))[0]

    def u64(self, what: str) -> int:
        return struct.unpack("<Q", self.take(8, what))[0]

    def boolean(self, what: str) -> bool:
        value = self.u8(what)
        if value not in (0, 1):
            raise DecodeError(f"Invalid bool {value} for {what}")
        return value == 1

    def pubkey(self, what: str) -> str:
        return str(Pubkey.from_bytes(self.take(PUBKEY_SIZE, what)))

    def string(self, what: str, max_length: int) -> str:
        length = self.u32(f"{what} length")
        if length > max_length:
            raise DecodeError(f"{what} length {length} exceeds capacity {max_length}")
        raw = self.take(length, what)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"{what} is not valid UTF-8: {e}") from e


def decode_metadata(data: bytes, metadata_address: Optional[str] = None) -> MetadataRecord:
    """
    Decode a token-metadata account.

    Raises:
        DecodeError: wrong discriminator, truncated buffer or out-of-range field
    """
    r = _Reader(data)

    key = r.u8("key")
    if key != METADATA_KEY_V1:
        raise DecodeError(f"Unexpected metadata key {key} (want {METADATA_KEY_V1})")

    update_authority = r.pubkey("update_authority")
    mint = r.pubkey("mint")
    name = r.string("name", MAX_NAME_LENGTH)
    symbol = r.string("symbol", MAX_SYMBOL_LENGTH)
    uri = r.string("uri", MAX_URI_LENGTH)

    seller_fee = r.u16("seller_fee_basis_points")
    if seller_fee > MAX_SELLER_FEE_BASIS_POINTS:
        raise DecodeError(f"seller_fee_basis_points {seller_fee} out of range")

    creators = None
    tag = r.u8("creators option")
    if tag == 1:
        count = r.u32("creators length")
        if count > MAX_CREATOR_LIMIT:
            raise DecodeError(f"{count} creators exceeds limit {MAX_CREATOR_LIMIT}")
        creators = []
        for i in range(count):
            address = r.pubkey(f"creators[{i}].address")
            verified = r.boolean(f"creators[{i}].verified")
            share = r.u8(f"creators[{i}].share")
            if share > 100:
                raise DecodeError(f"creators[{i}].share {share} out of range")
            creators.append(Creator(address=address, verified=verified, share=share))
    elif tag != 0:
        raise DecodeError(f"Invalid option tag {tag} for creators")

    primary_sale_happened = r.boolean("primary_sale_happened")
    is_mutable = r.boolean("is_mutable")

    return MetadataRecord(
        metadata_address=metadata_address,
        update_authority=update_authority,
        mint_address=mint,
        name=name,
        symbol=symbol,
        uri=uri,
        seller_fee_basis_points=seller_fee,
        creators=creators,
        primary_sale_happened=primary_sale_happened,
        is_mutable=is_mutable,
    )


def decode_token_account(data: bytes) -> TokenAccount:
    """Decode the fixed prefix of an SPL token account."""
    if len(data) < TOKEN_ACCOUNT_SIZE:
        raise DecodeError(f"Token account is {len(data)} bytes, expected {TOKEN_ACCOUNT_SIZE}")
    if data[TOKEN_ACCOUNT_STATE_OFFSET] == 0:
        raise DecodeError("Token account is uninitialized")

    r = _Reader(data)
    return TokenAccount(
        mint=r.pubkey("mint"),
        owner=r.pubkey("owner"),
        amount=r.u64("amount"),
    )


# =============================================================================
# ENCODING
# =============================================================================

def _encode_string(value: str) -> bytes:
    raw = value.encode("utf-8")
    return struct.pack("<I", len(raw)) + raw


def encode_creators(creators: Optional[List[Creator]]) -> bytes:
    if creators is None:
        return b"\x00"
    out = b"\x01" + struct.pack("<I", len(creators))
    for c in creators:
        out += bytes(Pubkey.from_string(c.address)) + bytes([1 if c.verified else 0, c.share])
    return out


def encode_data(
    name: str,
    symbol: str,
    uri: str,
    seller_fee_basis_points: int,
    creators: Optional[List[Creator]],
) -> bytes:
    """Borsh encoding of the metadata `Data` struct (strings written as given)."""
    return (
        _encode_string(name)
        + _encode_string(symbol)
        + _encode_string(uri)
        + struct.pack("<H", seller_fee_basis_points)
        + encode_creators(creators)
    )


def encode_update_metadata_account(
    name: str,
    symbol: str,
    uri: str,
    seller_fee_basis_points: int,
    creators: Optional[List[Creator]],
) -> bytes:
    """
    Instruction data for UpdateMetadataAccount:
    Some(data), new update authority None, primary_sale_happened None.
    """
    return (
        bytes([UPDATE_METADATA_ACCOUNT_IX])
        + b"\x01"
        + encode_data(name, symbol, uri, seller_fee_basis_points, creators)
        + b"\x00"
        + b"\x00"
    )
