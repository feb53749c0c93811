"""
Database key escaping.

Keys cannot contain any of the following characters: . $ # [ ] /
"""

# "%" goes first so the escapes added afterwards stay intact
_KEY_ESCAPES = (
    ("%", "%25"),
    (".", "%2E"),
    ("#", "%23"),
    ("$", "%24"),
    ("/", "%2F"),
    ("[", "%5B"),
    ("]", "%5D"),
)


def encode_as_firebase_key(value: str) -> str:
    """
    Return a valid database key for a string.

    Args:
        value: Any string, e.g. an email address

    Returns:
        The string with forbidden characters percent-encoded
    """
    for char, escape in _KEY_ESCAPES:
        value = value.replace(char, escape)
    return value
