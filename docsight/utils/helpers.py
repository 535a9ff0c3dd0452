"""
Common utility functions and helpers.
"""
import hashlib
import re


def clean_text(text: str) -> str:
    """
    Collapse runs of whitespace into single spaces.

    Args:
        text: Raw text string

    Returns:
        Single-line text with no leading/trailing whitespace
    """
    return re.sub(r'\s+', ' ', text).strip()


def generate_hash(text: str) -> str:
    """
    Generate SHA256 hash of text.

    Args:
        text: Text to hash

    Returns:
        Hex digest of hash
    """
    return hashlib.sha256(text.encode('utf-8')).hexdigest()
