"""
Identifier helpers.
"""
import random
import string
import time

_BASE36 = string.digits + string.ascii_lowercase


def to_base36(number: int) -> str:
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_id(suffix_length: int = 11) -> str:
    """Time-ordered id: base-36 epoch milliseconds plus a random base-36 suffix"""
    timestamp = to_base36(int(time.time() * 1000))
    suffix = "".join(random.choices(_BASE36, k=suffix_length))
    return timestamp + suffix
