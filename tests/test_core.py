import bech32
import pytest

from nostrvanity.core import (
    BECH32_ALPHABET,
    KEY_LENGTH,
    CandidateGenerator,
    decode,
    derive_public_key,
    encode,
    generate_candidate,
    generate_keypair,
)
from nostrvanity.errors import EncodingError, GenerationError


def test_key_generation():
    candidate = generate_candidate()
    assert candidate.npub.startswith("npub1")
    assert candidate.nsec.startswith("nsec1")
    assert len(candidate.hex_pubkey) == 64
    # 5 tag chars + 52 data chars + 6 checksum chars
    assert len(candidate.npub) == 63
    assert all(c in BECH32_ALPHABET for c in candidate.npub[5:])


def test_keypairs_are_not_reused():
    first = generate_keypair()
    second = generate_keypair()
    assert len(first[0]) == len(first[1]) == KEY_LENGTH
    assert first != second


def test_public_key_matches_secret():
    secret, public = generate_keypair()
    assert derive_public_key(secret) == public


def test_encoding_is_valid_bech32():
    secret, public = generate_keypair()
    npub = encode("npub", public)
    hrp, words = bech32.bech32_decode(npub)
    assert hrp == "npub"
    assert bytes(bech32.convertbits(words, 5, 8, False)) == public
    assert decode("npub", npub) == public


def test_encode_rejects_wrong_length():
    with pytest.raises(EncodingError):
        encode("npub", b"\x01" * 31)
    with pytest.raises(EncodingError):
        encode("npub", b"\x01" * 33)


def test_decode_rejects_wrong_prefix_and_garbage():
    npub = generate_candidate().npub
    with pytest.raises(EncodingError):
        decode("nsec", npub)
    with pytest.raises(EncodingError):
        decode("npub", npub[:-1] + ("q" if npub[-1] != "q" else "p"))


def _short_public_key():
    return b"\x02" * KEY_LENGTH, b"\x03" * (KEY_LENGTH - 1)


def test_candidate_generator_reports_encoding_failure():
    generator = CandidateGenerator(keypair_source=_short_public_key)
    with pytest.raises(GenerationError):
        generator.generate()


def test_candidate_generator_uses_injected_source():
    generator = CandidateGenerator(keypair_source=lambda: (b"\x02" * 32, b"\x03" * 32))
    candidate = generator()
    assert candidate.hex_pubkey == "03" * 32
    assert decode("nsec", candidate.nsec) == b"\x02" * 32
    assert candidate == generator()
