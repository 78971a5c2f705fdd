"""
Core key generation and bech32 encoding for Nostr identities.

Nostr keys are secp256k1 keys (NIP-01). The public key is the 32-byte
x-only coordinate; both halves are shown to users as bech32 strings with
the "npub" / "nsec" human-readable prefixes (NIP-19).
"""

from dataclasses import dataclass
from typing import Callable

import bech32
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives import serialization

from nostrvanity.errors import EncodingError, GenerationError

KEY_LENGTH = 32                # bytes, both secret and x-only public key
NPUB_HRP = "npub"
NSEC_HRP = "nsec"
# "npub" + the bech32 separator "1"
IDENTIFIER_PREFIX_LENGTH = len(NPUB_HRP) + 1

BECH32_ALPHABET = "023456789acdefghjklmnpqrstuvwxyz"

# Serialization constants cached at module level for performance
_CURVE = ec.SECP256K1()
_X962 = serialization.Encoding.X962
_COMPRESSED = serialization.PublicFormat.CompressedPoint


@dataclass(frozen=True)
class Candidate:
    """One generated key pair, ready to be matched."""
    npub: str
    nsec: str
    hex_pubkey: str


def _xonly(private_key: ec.EllipticCurvePrivateKey) -> bytes:
    # Compressed point is 0x02/0x03 parity byte followed by X.
    return private_key.public_key().public_bytes(_X962, _COMPRESSED)[1:]


def generate_keypair() -> tuple[bytes, bytes]:
    """Generate a fresh secp256k1 key pair from the OpenSSL CSPRNG.

    Returns:
        (secret_key_bytes, xonly_public_key_bytes), 32 bytes each
    """
    private_key = ec.generate_private_key(_CURVE)
    secret = private_key.private_numbers().private_value.to_bytes(KEY_LENGTH, "big")
    return secret, _xonly(private_key)


def derive_public_key(secret: bytes) -> bytes:
    """Derive the 32-byte x-only public key for a 32-byte secret."""
    if len(secret) != KEY_LENGTH:
        raise EncodingError(f"Secret key must be {KEY_LENGTH} bytes, got {len(secret)}.")
    private_key = ec.derive_private_key(int.from_bytes(secret, "big"), _CURVE)
    return _xonly(private_key)


def encode(hrp: str, data: bytes) -> str:
    """bech32-encode a 32-byte key under the given human-readable prefix."""
    if len(data) != KEY_LENGTH:
        raise EncodingError(
            f"Cannot encode {len(data)} bytes as {hrp}; expected {KEY_LENGTH}."
        )
    words = bech32.convertbits(data, 8, 5)
    if words is None:
        raise EncodingError(f"Cannot convert {hrp} payload to 5-bit groups.")
    return bech32.bech32_encode(hrp, words)


def decode(hrp: str, text: str) -> bytes:
    """Decode a bech32 key string, checking its human-readable prefix."""
    found_hrp, words = bech32.bech32_decode(text)
    if found_hrp is None:
        raise EncodingError(f"'{text}' is not a valid bech32 string.")
    if found_hrp != hrp:
        raise EncodingError(f"Expected '{hrp}' prefix, got '{found_hrp}'.")
    data = bech32.convertbits(words, 5, 8, False)
    if data is None or len(data) != KEY_LENGTH:
        raise EncodingError(f"'{text}' does not hold a {KEY_LENGTH}-byte key.")
    return bytes(data)


class CandidateGenerator:
    """Key pair source plus encoder, producing one Candidate per call.

    Instances are picklable as long as the wrapped callables are module-level
    functions, so the generator can be shipped to worker processes.

    A failed encoding is reported as GenerationError; the caller decides
    whether to skip the attempt.
    """

    def __init__(
        self,
        keypair_source: Callable[[], tuple[bytes, bytes]] = generate_keypair,
        encoder: Callable[[str, bytes], str] = encode,
    ):
        self.keypair_source = keypair_source
        self.encoder = encoder

    def generate(self) -> Candidate:
        secret, public = self.keypair_source()
        try:
            npub = self.encoder(NPUB_HRP, public)
            nsec = self.encoder(NSEC_HRP, secret)
        except EncodingError as e:
            raise GenerationError(str(e)) from e
        return Candidate(npub=npub, nsec=nsec, hex_pubkey=public.hex())

    __call__ = generate


generate_candidate = CandidateGenerator()
