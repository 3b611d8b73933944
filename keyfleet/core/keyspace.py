"""
Prefix parsing for the searched keyspace
"""
from dataclasses import dataclass

from keyfleet.errors import ConfigurationError

# Workers match prefixes against base64-encoded public keys
BASE64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
BITS_PER_CHAR = 6
# 256-bit keys encode to 43 significant base64 characters
MAX_PREFIX_LENGTH = 43


@dataclass(frozen=True)
class Prefix:
    text: str
    bit_length: int

    @property
    def space(self) -> int:
        return keyspace_size(self.bit_length)


def parse_prefix(text: str) -> Prefix:
    """Validate a prefix and work out how many key bits it pins down"""
    if not text:
        raise ConfigurationError("Prefix must not be empty")
    if len(text) > MAX_PREFIX_LENGTH:
        raise ConfigurationError(f"Prefix is {len(text)} characters long; keys encode to at most {MAX_PREFIX_LENGTH}")
    invalid = sorted({ch for ch in text if ch not in BASE64_ALPHABET})
    if invalid:
        raise ConfigurationError(f"Prefix {text!r} contains non-base64 characters: {''.join(invalid)}")
    return Prefix(text=text, bit_length=len(text) * BITS_PER_CHAR)


def prefix_bit_length(text: str) -> int:
    return parse_prefix(text).bit_length


def keyspace_size(bit_length: int) -> int:
    return 2 ** bit_length
