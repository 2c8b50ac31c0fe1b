"""Fractional order keys.

Keys are base-62 strings compared lexicographically. A new key can always
be generated strictly between any two existing keys, so inserting never
requires renumbering siblings. Keys never end in the zero digit; that keeps
the space between any two keys non-empty.
"""

from __future__ import annotations

DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
_ZERO = DIGITS[0]


def _midpoint(a: str, b: str | None) -> str:
    """Key strictly between a and b ("" is the lower bound, None the upper)."""
    if b is not None:
        n = 0
        while n < len(b) and (a[n] if n < len(a) else _ZERO) == b[n]:
            n += 1
        if n > 0:
            return b[:n] + _midpoint(a[n:], b[n:])

    digit_a = DIGITS.index(a[0]) if a else 0
    digit_b = DIGITS.index(b[0]) if b is not None else len(DIGITS)
    if digit_b - digit_a > 1:
        return DIGITS[(digit_a + digit_b + 1) // 2]
    if b is not None and len(b) > 1:
        return b[:1]
    return DIGITS[digit_a] + _midpoint(a[1:], None)


def _check(key: str) -> None:
    if not key:
        raise ValueError("Order key cannot be empty")
    if key.endswith(_ZERO):
        raise ValueError(f"Invalid order key (trailing zero digit): {key!r}")
    bad = [ch for ch in key if ch not in DIGITS]
    if bad:
        raise ValueError(f"Invalid order key characters: {key!r}")


def key_between(a: str | None, b: str | None) -> str:
    """Generate a key strictly between a and b.

    Args:
        a: Lower neighbour, or None for "before everything".
        b: Upper neighbour, or None for "after everything".

    Raises:
        ValueError: If a >= b or either key is malformed.
    """
    if a is not None:
        _check(a)
    if b is not None:
        _check(b)
    if a is not None and b is not None and a >= b:
        raise ValueError(f"Order keys out of order: {a!r} >= {b!r}")
    return _midpoint(a or "", b)


def keys_after(a: str | None, count: int) -> list[str]:
    """Generate `count` ascending keys after a."""
    keys: list[str] = []
    previous = a
    for _ in range(count):
        previous = key_between(previous, None)
        keys.append(previous)
    return keys
