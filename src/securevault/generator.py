# Password Generator
#
# Random passwords for new vault items, drawn with the `secrets` CSPRNG,
# plus a rough 0-100 strength score for the item editor.

import re
import secrets

from .core.errors import ValidationError

LOWERCASE = "abcdefghijklmnopqrstuvwxyz"
UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
NUMBERS = "0123456789"
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
SIMILAR_CHARS = "il1Lo0O"

DEFAULT_LENGTH = 16
MAX_LENGTH = 128


def generate_password(
    length: int = DEFAULT_LENGTH,
    include_numbers: bool = True,
    include_symbols: bool = True,
    exclude_similar: bool = False,
) -> str:
    """
    Generate a random password.

    Letters are always included; digits and symbols are optional.
    ``exclude_similar`` drops look-alike characters (i, l, 1, L, o, 0, O).

    Raises:
        ValidationError: length outside 1..128
    """
    if not 1 <= length <= MAX_LENGTH:
        raise ValidationError(f"Password length must be between 1 and {MAX_LENGTH}")

    charset = LOWERCASE + UPPERCASE
    if include_numbers:
        charset += NUMBERS
    if include_symbols:
        charset += SYMBOLS
    if exclude_similar:
        charset = "".join(c for c in charset if c not in SIMILAR_CHARS)

    return "".join(secrets.choice(charset) for _ in range(length))


def password_strength(password: str) -> int:
    """Score 0-100: up to 40 for length, 15 per character class present."""
    if not password:
        return 0

    score = min(len(password) * 4, 40)
    for pattern in (r"[a-z]", r"[A-Z]", r"[0-9]", r"[^a-zA-Z0-9]"):
        if re.search(pattern, password):
            score += 15
    return min(score, 100)
