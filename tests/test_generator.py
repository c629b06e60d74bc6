"""
Tests for the password generator and strength score.
"""

import pytest

from securevault.core.errors import ValidationError
from securevault.generator import (
    NUMBERS,
    SIMILAR_CHARS,
    SYMBOLS,
    generate_password,
    password_strength,
)


class TestGeneratePassword:

    def test_default_length(self):
        assert len(generate_password()) == 16

    @pytest.mark.parametrize("length", [1, 8, 64, 128])
    def test_length(self, length):
        assert len(generate_password(length)) == length

    @pytest.mark.parametrize("length", [0, -1, 129])
    def test_invalid_length(self, length):
        with pytest.raises(ValidationError):
            generate_password(length)

    def test_letters_only(self):
        password = generate_password(100, include_numbers=False, include_symbols=False)
        assert password.isalpha()

    def test_no_symbols(self):
        password = generate_password(128, include_symbols=False)
        assert not any(c in SYMBOLS for c in password)

    def test_no_numbers(self):
        password = generate_password(128, include_numbers=False)
        assert not any(c in NUMBERS for c in password)

    def test_exclude_similar(self):
        for _ in range(10):
            password = generate_password(128, exclude_similar=True)
            assert not any(c in SIMILAR_CHARS for c in password)

    def test_random(self):
        assert len({generate_password() for _ in range(20)}) == 20


class TestPasswordStrength:

    @pytest.mark.parametrize("password,score", [
        ("", 0),
        ("abc", 27),
        ("abcdefghij", 55),
        ("Abcdefghij", 70),
        ("Abcdefgh1!", 100),
    ])
    def test_scores(self, password, score):
        assert password_strength(password) == score

    def test_capped_at_100(self):
        assert password_strength("Aa1!" * 50) == 100
