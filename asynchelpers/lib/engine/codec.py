r"""
Token codec.

Formats, recognizes and parses placeholder tokens. A token has the form

    <prefix><instanceIndex>$<invocationIndex>$}

e.g. ``{$ASYNCID$0$3$}``. Tokens may stand alone or sit anywhere inside a
larger string, so recognition is done by pattern search rather than by
equality.

Nothing in here holds state beyond the compiled pattern of a prefix.
"""

import re
from typing import Any, Final, Iterator, Mapping, NamedTuple, Optional, Self

DEFAULT_PREFIX: Final[str] = "{$ASYNCID$"
TERMINATOR: Final[str] = "$}"


class TokenParts(NamedTuple):
    """Numeric parts encoded in a token."""

    instance: int
    invocation: int


def prefix_check(prefix: str) -> str:
    """Validate a token prefix.

    Args:
        prefix: Candidate prefix

    Returns:
        The prefix unchanged

    Raises:
        ValueError: If the prefix is empty or contains the token terminator,
            which would make token boundaries ambiguous
    """
    if not prefix:
        raise ValueError("Token prefix cannot be empty")
    if TERMINATOR in prefix:
        raise ValueError(f"Token prefix cannot contain '{TERMINATOR}': {prefix!r}")
    return prefix


def token_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(re.escape(prefix) + r"(\d+)\$(\d+)\$\}")


def token_format(instance_index: int, invocation_index: int, prefix: str) -> str:
    """Build the token for one invocation of one engine instance."""
    return f"{prefix}{instance_index}${invocation_index}{TERMINATOR}"


def token_parse(token: str, prefix: str) -> Optional[TokenParts]:
    """Split a token into its instance and invocation indices.

    Returns None when ``token`` is not exactly one well-formed token.
    """
    match = token_pattern(prefix).fullmatch(token)
    if match is None:
        return None
    return TokenParts(int(match.group(1)), int(match.group(2)))


class TokenMatches:
    """Every token occurrence in a text, left to right, duplicates included.

    Iterating twice searches the text twice; nothing is cached.
    """

    def __init__(self: Self, pattern: re.Pattern[str], text: str) -> None:
        self.pattern: re.Pattern[str] = pattern
        self.text: str = text

    def __iter__(self: Self) -> Iterator[str]:
        return (match.group(0) for match in self.pattern.finditer(self.text))


class TokenCodec:
    """Token handling bound to one prefix.

    Attributes:
        prefix: The prefix tokens start with
        pattern: Compiled search pattern for this prefix
    """

    def __init__(self: Self, prefix: str = DEFAULT_PREFIX) -> None:
        self.prefix: str = prefix_check(prefix)
        self.pattern: re.Pattern[str] = token_pattern(self.prefix)

    def format(self: Self, instance_index: int, invocation_index: int) -> str:
        return token_format(instance_index, invocation_index, self.prefix)

    def parse(self: Self, token: str) -> Optional[TokenParts]:
        return token_parse(token, self.prefix)

    def matches(self: Self, text: Any) -> bool:
        """True if ``text`` is a string holding at least one token."""
        if not isinstance(text, str):
            return False
        return self.pattern.search(text) is not None

    def fullmatch(self: Self, text: str) -> bool:
        """True if ``text`` is exactly one token and nothing else."""
        return self.pattern.fullmatch(text) is not None

    def extract_all(self: Self, text: str) -> TokenMatches:
        return TokenMatches(self.pattern, text)

    def substitute(self: Self, text: str, values: Mapping[str, Any]) -> str:
        """Replace every token occurrence with the printable form of its value.

        Args:
            text: Text containing tokens
            values: Resolved value per token; every token in ``text`` must be present

        Returns:
            The text with all tokens replaced
        """
        return self.pattern.sub(lambda match: str(values[match.group(0)]), text)
