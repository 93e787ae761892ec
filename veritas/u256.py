"""256-bit unsigned integers as four little-endian 64-bit words."""

from __future__ import annotations

_WORD_BITS = 64
_WORD_MASK = (1 << _WORD_BITS) - 1
_WORDS = 4
_U256_MAX = (1 << (_WORD_BITS * _WORDS)) - 1


def _check(value: int) -> int:
    if not 0 <= value <= _U256_MAX:
        raise ValueError(f"value out of 256-bit unsigned range: {value}")
    return value


def from_words(words) -> int:
    """Build an integer from four little-endian 64-bit words."""
    words = list(words)
    if len(words) != _WORDS:
        raise ValueError(f"expected {_WORDS} words, got {len(words)}")
    result = 0
    for shift, word in enumerate(words):
        if not 0 <= word <= _WORD_MASK:
            raise ValueError(f"word out of 64-bit range: {word}")
        result |= word << (shift * _WORD_BITS)
    return result


def to_words(value: int) -> tuple[int, int, int, int]:
    """Split an integer into four little-endian 64-bit words."""
    _check(value)
    return tuple((value >> (i * _WORD_BITS)) & _WORD_MASK for i in range(_WORDS))  # type: ignore[return-value]


def shift_word_left(value: int) -> int:
    """Shift left by one 64-bit word, discarding the top word."""
    return (_check(value) << _WORD_BITS) & _U256_MAX


def checked_shift_word_left(value: int) -> int | None:
    """Shift left by one word, or ``None`` if the top word is non-zero."""
    if to_words(value)[-1] > 0:
        return None
    return shift_word_left(value)