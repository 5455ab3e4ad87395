"""Binary content detection.

A coarse printable-ratio heuristic, not content sniffing. Non-ASCII UTF-8
text counts as non-printable, so heavily accented text can be misjudged.
"""

from __future__ import annotations

from repoingest.config import DEFAULT_BINARY_THRESHOLD

# TAB, LF, CR
_TEXT_CONTROL_BYTES = frozenset({0x09, 0x0A, 0x0D})


def _is_printable(byte: int) -> bool:
    return byte in _TEXT_CONTROL_BYTES or 0x20 <= byte <= 0x7E


def non_printable_ratio(data: bytes) -> float:
    """Fraction of bytes outside printable ASCII and TAB/CR/LF."""
    if not data:
        return 0.0
    non_printable = sum(1 for b in data if not _is_printable(b))
    return non_printable / len(data)


def is_binary(data: bytes, threshold: float = DEFAULT_BINARY_THRESHOLD) -> bool:
    """Classify a byte buffer as binary.

    Args:
        data: Raw file bytes
        threshold: Non-printable ratio at or above which the buffer is
            binary; clamped to [0, 1]

    Returns:
        True for any buffer containing a NUL byte, False for an empty
        buffer, otherwise whether the non-printable ratio reaches threshold
    """
    if b"\x00" in data:
        return True
    if not data:
        return False
    threshold = min(max(threshold, 0.0), 1.0)
    return non_printable_ratio(data) >= threshold
