"""Pattern matching strategies and difficulty estimates for npub search."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from nostrvanity.core import BECH32_ALPHABET, IDENTIFIER_PREFIX_LENGTH
from nostrvanity.errors import EmptyPatternSetError, InvalidPatternError

# 32 bytes -> 52 five-bit groups + 6 checksum characters after "npub1"
MAX_PATTERN_LENGTH = 58
KEYS_PER_SEC_PER_CORE = 100_000  # conservative single-core estimate

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400
SECONDS_PER_YEAR = 31_536_000


class MatchKind(Enum):
    PREFIX = "prefix"
    SUFFIX = "suffix"
    CONTAINS = "contains"


@dataclass(frozen=True)
class Pattern:
    """Immutable, picklable match rule shared by all workers.

    Build it with Pattern.create() so that case-insensitive values are
    normalized exactly once.
    """
    value: str
    match_kind: MatchKind = MatchKind.PREFIX
    case_sensitive: bool = False

    @classmethod
    def create(
        cls,
        value: str,
        match_kind: MatchKind = MatchKind.PREFIX,
        case_sensitive: bool = False,
    ) -> "Pattern":
        if not case_sensitive:
            value = value.lower()
        return cls(value, match_kind, case_sensitive)

    def matches(self, npub: str) -> bool:
        """Test an encoded public identifier, ignoring its "npub1" tag."""
        compare = npub[IDENTIFIER_PREFIX_LENGTH:]
        if not self.case_sensitive:
            compare = compare.lower()

        if self.match_kind == MatchKind.PREFIX:
            return compare.startswith(self.value)
        elif self.match_kind == MatchKind.SUFFIX:
            return compare.endswith(self.value)
        elif self.match_kind == MatchKind.CONTAINS:
            return self.value in compare
        return False


class PatternMatcher:
    """Ordered set of patterns; the first satisfied pattern wins."""

    __slots__ = ("patterns",)

    def __init__(self, patterns: Iterable[Pattern]):
        self.patterns = tuple(patterns)
        if not self.patterns:
            raise EmptyPatternSetError("No patterns provided. Use --patterns or --file.")

    @classmethod
    def from_strings(
        cls,
        values: Iterable[str],
        match_kind: MatchKind = MatchKind.PREFIX,
        case_sensitive: bool = False,
    ) -> "PatternMatcher":
        """Validate raw user input and build a matcher.

        Raises EmptyPatternSetError or InvalidPatternError before any
        pattern is used.
        """
        cleaned = [validate_pattern(v, case_sensitive) for v in values]
        return cls(Pattern.create(v, match_kind, case_sensitive) for v in cleaned)

    def matches(self, npub: str) -> Optional[Pattern]:
        for pattern in self.patterns:
            if pattern.matches(npub):
                return pattern
        return None

    def find_match(self, candidate) -> Optional[Pattern]:
        """Return the first pattern satisfied by candidate.npub, or None."""
        return self.matches(candidate.npub)

    @property
    def values(self) -> list[str]:
        return [p.value for p in self.patterns]

    def __len__(self) -> int:
        return len(self.patterns)


def is_bech32(pattern: str) -> bool:
    """True if every character is in the bech32 data alphabet."""
    return all(c in BECH32_ALPHABET for c in pattern)


def validate_pattern(pattern: str, case_sensitive: bool = False) -> str:
    """Validate a pattern against the bech32 alphabet.

    Surrounding whitespace is stripped. Case-insensitive patterns are
    lowercased first; case-sensitive ones must already be lowercase because
    bech32 strings never contain uppercase letters.

    Returns the cleaned pattern.
    Raises InvalidPatternError for invalid patterns.
    """
    cleaned = pattern.strip()
    if not case_sensitive:
        cleaned = cleaned.lower()
    if not cleaned:
        raise InvalidPatternError("Pattern cannot be empty.")
    if not is_bech32(cleaned):
        raise InvalidPatternError(
            f"Pattern '{pattern}' contains invalid characters. "
            f"Valid: {BECH32_ALPHABET}"
        )
    if len(cleaned) > MAX_PATTERN_LENGTH:
        raise InvalidPatternError(
            f"Pattern length {len(cleaned)} exceeds the {MAX_PATTERN_LENGTH} "
            "characters of an npub."
        )
    return cleaned


def expected_attempts(pattern_length: int) -> float:
    """Expected attempts to hit one pattern of this length (32**L / 2)."""
    return len(BECH32_ALPHABET) ** pattern_length / 2


def estimate_seconds(pattern_length: int, keys_per_sec: float) -> float:
    return expected_attempts(pattern_length) / keys_per_sec


def format_duration(seconds: float) -> str:
    if seconds < SECONDS_PER_MINUTE:
        return f"{seconds:.1f} seconds"
    elif seconds < SECONDS_PER_HOUR:
        return f"{seconds / SECONDS_PER_MINUTE:.1f} minutes"
    elif seconds < SECONDS_PER_DAY:
        return f"{seconds / SECONDS_PER_HOUR:.1f} hours"
    elif seconds < SECONDS_PER_YEAR:
        return f"{seconds / SECONDS_PER_DAY:.1f} days"
    else:
        return f"{seconds / SECONDS_PER_YEAR:.1f} years"


def estimate_time(pattern_length: int, keys_per_sec: float) -> str:
    """Human readable expected search time for a pattern length."""
    return format_duration(estimate_seconds(pattern_length, keys_per_sec))


def estimate_difficulty(pattern: Pattern, num_workers: int = 1) -> dict:
    """Estimate expected attempts and time to find a match.

    Returns dict with: expected_attempts, keys_per_sec, estimated_seconds,
    estimated_time
    """
    n = len(pattern.value)
    keys_per_sec = KEYS_PER_SEC_PER_CORE * max(1, num_workers)
    return {
        "expected_attempts": int(expected_attempts(n)),
        "keys_per_sec": keys_per_sec,
        "estimated_seconds": estimate_seconds(n, keys_per_sec),
        "estimated_time": estimate_time(n, keys_per_sec),
    }
