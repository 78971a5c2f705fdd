"""Exception types raised by nostrvanity."""


class VanityError(Exception):
    """Base class for all nostrvanity errors."""


class InvalidPatternError(VanityError, ValueError):
    """A pattern is empty, too long, or uses characters outside the bech32 alphabet."""


class EmptyPatternSetError(VanityError, ValueError):
    """No patterns were supplied."""


class GenerationError(VanityError):
    """A single candidate could not be produced. Never fatal to a run."""


class EncodingError(GenerationError):
    """bech32 encoding or decoding rejected its input."""


class ChannelClosedError(VanityError):
    """A match could not be delivered because the channel was closed."""


class WorkerJoinError(VanityError):
    """The worker pool failed; attempt counts and deliveries are no longer trustworthy."""
