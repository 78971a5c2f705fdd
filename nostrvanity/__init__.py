"""nostrvanity: parallel vanity npub search for Nostr identities."""

__version__ = "0.1.0"
