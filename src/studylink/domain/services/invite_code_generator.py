"""Invite code generator.

Generates human-typable group invite codes in SL-XXXX format. Symbols come
from an alphabet without the easily confused characters I, O, 0 and 1.
"""

import re
import secrets
from typing import Callable


class InviteCodeGenerator:
    """Generator for random invite codes in SL-XXXX format.

    Each symbol is drawn from a uniform random byte source by rejection
    sampling: bytes at or above ``256 - 256 % len(alphabet)`` are discarded,
    so every symbol is equally likely for any alphabet of at most 256
    symbols. With the default 32-symbol alphabet no byte is ever discarded.

    The generator does not check for collisions. Callers issue codes through
    a store-aware loop that re-draws while a code is taken.

    Example codes: SL-7KQM, SL-A2ZX
    """

    PREFIX = "SL-"
    ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
    LENGTH = 4

    # Regex pattern for valid invite codes
    PATTERN = re.compile(r"^SL-[ABCDEFGHJKLMNPQRSTUVWXYZ23456789]{4}$")

    def __init__(
        self,
        random_bytes: Callable[[int], bytes] = secrets.token_bytes,
        alphabet: str | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            random_bytes: Source of uniform random bytes, called with a count.
            alphabet: Override of the symbol alphabet (1 to 256 symbols).
        """
        self.alphabet = alphabet or self.ALPHABET
        if not 0 < len(self.alphabet) <= 256:
            raise ValueError("Alphabet must contain between 1 and 256 symbols")
        self.random_bytes = random_bytes
        self.max_valid = 256 - 256 % len(self.alphabet)

    def issue(self) -> str:
        """Issue a new invite code.

        Returns:
            A code such as ``SL-7KQM``.
        """
        symbols: list[str] = []
        while len(symbols) < self.LENGTH:
            for byte in self.random_bytes(self.LENGTH - len(symbols)):
                if byte < self.max_valid:
                    symbols.append(self.alphabet[byte % len(self.alphabet)])
        return self.PREFIX + "".join(symbols)

    @classmethod
    def normalize(cls, code: str) -> str:
        """Normalize user input: strip whitespace and upper-case.

        Examples:
            >>> InviteCodeGenerator.normalize(" sl-7kqm ")
            'SL-7KQM'
        """
        return code.strip().upper()

    @classmethod
    def validate(cls, code: str) -> bool:
        """Validate that an invite code matches the SL-XXXX format.

        Args:
            code: The invite code to validate.

        Returns:
            True if the code matches the format, False otherwise.

        Examples:
            >>> InviteCodeGenerator.validate("SL-7KQM")
            True
            >>> InviteCodeGenerator.validate("SL-7KQ0")
            False
        """
        if not isinstance(code, str):
            return False
        return bool(cls.PATTERN.match(code))


default_invite_code_generator = InviteCodeGenerator()
