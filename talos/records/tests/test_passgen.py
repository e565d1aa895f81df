"""Tests for the password generator."""

import pytest

from talos.records.passgen import (
    LOWER,
    NUMBERS,
    SYMBOLS,
    UPPER,
    GeneratorOptions,
    generate_from,
    generate_password,
    parse_generator_args,
)


class TestGeneratePassword:
    def test_default_length(self):
        assert len(generate_password()) == 24

    def test_custom_length(self):
        assert len(generate_password(40)) == 40

    def test_lowercase_only(self):
        pw = generate_password(64, upper=False, numbers=False, symbols=False)
        assert set(pw) <= set(LOWER)

    def test_alphabet_respected(self):
        pw = generate_password(128, upper=True, numbers=True, symbols=False)
        assert set(pw) <= set(LOWER + UPPER + NUMBERS)
        assert not set(pw) & set(SYMBOLS)

    def test_different_each_time(self):
        assert generate_password() != generate_password()

    @pytest.mark.parametrize("length", [0, 7, 129])
    def test_length_bounds(self, length):
        with pytest.raises(ValueError):
            generate_password(length)


class TestOptions:
    def test_alphabet(self):
        opts = GeneratorOptions(upper=False, numbers=True, symbols=False)
        assert opts.alphabet == LOWER + NUMBERS

    def test_generate_from(self):
        assert len(generate_from(GeneratorOptions(length=12))) == 12

    def test_parse_flags(self):
        opts = parse_generator_args("32 --no-symbols --no-upper")
        assert opts == GeneratorOptions(length=32, upper=False, numbers=True, symbols=False)

    def test_parse_keeps_base(self):
        base = GeneratorOptions(length=16, symbols=False)
        assert parse_generator_args("", base) == base

    def test_parse_unknown_flag(self):
        with pytest.raises(ValueError, match="--bogus"):
            parse_generator_args("--bogus")
