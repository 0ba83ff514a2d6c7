import re

# Anything outside letters, digits, dot, dash and underscore
_UNSAFE_IDENTIFIER_CHARS = re.compile(r"[^a-zA-Z0-9.\-_]")


def sanitize_identifier(value: str) -> str:
    """Strip characters that are unsafe to interpolate into SQL as an identifier.

    Table names can't be bound as query parameters, so this is applied right
    before every query that embeds one.
    """
    return _UNSAFE_IDENTIFIER_CHARS.sub("", value)
