"""Random identifier generation."""

import secrets


def new_id(prefix: str) -> str:
    """Return ``prefix`` followed by 24 random hex characters."""
    return prefix + secrets.token_hex(12)