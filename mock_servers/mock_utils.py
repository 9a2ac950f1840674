"""
Shared utilities for the mock servers.

Identifier generation, clock helpers and the echo text both servers use for
their synthesized replies.
"""

import random
import string
import time

MOCK_REPLY_PREFIX = "Mock response to: "

_BASE36_ALPHABET = string.digits + string.ascii_lowercase


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def epoch_seconds() -> int:
    """Current wall-clock time in whole epoch seconds."""
    return int(time.time())


def generate_response_id() -> str:
    """
    Generate a chat completion identifier.

    Format: ``mock-<epoch ms>-<7 random base36 characters>``.
    """
    suffix = "".join(random.choices(_BASE36_ALPHABET, k=7))
    return f"mock-{epoch_ms()}-{suffix}"


def generate_sequential_id(prefix: str, sequence: int) -> str:
    """
    Generate a process-unique identifier from a monotonic sequence number.

    Format: ``<prefix>-<epoch ms>-<sequence>``.
    """
    return f"{prefix}-{epoch_ms()}-{sequence}"


def mock_reply(content: str) -> str:
    """Echo text used for assistant messages."""
    return f"{MOCK_REPLY_PREFIX}{content}"
