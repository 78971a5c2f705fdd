"""
Verification of generated identities.

Decodes the nsec independently of the search path, re-derives the public
key and checks it against the reported npub and hex key.
"""

from nostrvanity.core import NPUB_HRP, NSEC_HRP, Candidate, decode, derive_public_key, encode
from nostrvanity.errors import EncodingError


def verify_candidate(candidate: Candidate) -> dict:
    """Verify that a candidate's three encodings describe one key pair.

    Returns dict with:
        npub_match, hex_match, derived_npub, derived_hex, error
    """
    result = {
        "npub_match": None,
        "hex_match": None,
        "derived_npub": None,
        "derived_hex": None,
        "error": None,
    }

    try:
        secret = decode(NSEC_HRP, candidate.nsec)
        public = derive_public_key(secret)
        derived_npub = encode(NPUB_HRP, public)
    except (EncodingError, ValueError) as e:
        result["error"] = str(e)
        return result

    result["derived_npub"] = derived_npub
    result["derived_hex"] = public.hex()
    result["npub_match"] = derived_npub == candidate.npub
    result["hex_match"] = public.hex() == candidate.hex_pubkey
    return result


def is_valid(candidate: Candidate) -> bool:
    v = verify_candidate(candidate)
    return bool(v["npub_match"] and v["hex_match"])
