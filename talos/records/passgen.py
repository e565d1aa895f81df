"""
Password generator for new records and for the setup master key.

Uses the ``secrets`` module; lowercase letters are always part of the
alphabet, the other classes are opt-out.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass

LOWER = "abcdefghijklmnopqrstuvwxyz"
UPPER = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
NUMBERS = "0123456789"
SYMBOLS = "!@#$%^&*()_+~`|}{[]:;?><,./-="

MIN_LENGTH = 8
MAX_LENGTH = 128
DEFAULT_LENGTH = 24


@dataclass(frozen=True)
class GeneratorOptions:
    """Length and character classes chosen by the user."""

    length: int = DEFAULT_LENGTH
    upper: bool = True
    numbers: bool = True
    symbols: bool = True

    @property
    def alphabet(self) -> str:
        chars = LOWER
        if self.upper:
            chars += UPPER
        if self.numbers:
            chars += NUMBERS
        if self.symbols:
            chars += SYMBOLS
        return chars


def generate_password(
    length: int = DEFAULT_LENGTH,
    upper: bool = True,
    numbers: bool = True,
    symbols: bool = True,
) -> str:
    """Return a random password of ``length`` characters."""
    if not MIN_LENGTH <= length <= MAX_LENGTH:
        raise ValueError(f"Password length must be between {MIN_LENGTH} and {MAX_LENGTH}")
    alphabet = GeneratorOptions(length, upper, numbers, symbols).alphabet
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_from(options: GeneratorOptions) -> str:
    return generate_password(options.length, options.upper, options.numbers, options.symbols)


def parse_generator_args(args: str, base: GeneratorOptions | None = None) -> GeneratorOptions:
    """Parse ``[length] [--no-upper] [--no-numbers] [--no-symbols]``.

    Raises ValueError on an unknown flag or a non-numeric length.
    """
    opts = base or GeneratorOptions()
    length, upper, numbers, symbols = opts.length, opts.upper, opts.numbers, opts.symbols
    for token in args.split():
        if token == "--no-upper":
            upper = False
        elif token == "--no-numbers":
            numbers = False
        elif token == "--no-symbols":
            symbols = False
        elif token.isdigit():
            length = int(token)
        else:
            raise ValueError(f"Unknown generator option: {token}")
    return GeneratorOptions(length, upper, numbers, symbols)
