"""Text normalization helpers used for identity keys and filename matching."""

import re
import unicodedata

# Straight apostrophe, right single quote, backtick
_APOSTROPHES = re.compile(r"['’`]")
_NON_ALNUM = re.compile(r"[^a-z0-9]")
_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")
_UNSAFE_FILENAME = re.compile(r"[^\w.-]+")


def normalize(name: str | None) -> str:
    """Coarse identity key used to group duplicate records.

    Lower-cases and drops every character that is not an ASCII letter or
    digit. Accented letters are dropped, not folded.

    Args:
        name: Display name (None is treated as empty)

    Returns:
        Key string, possibly empty
    """
    if not name:
        return ""
    return _NON_ALNUM.sub("", str(name).lower()).strip()


def normalize_for_key(text: str | None) -> str:
    """Normalize a name or filename stem for image matching.

    Applies the following transformations:
    - Unicode NFKD normalization (decomposes characters)
    - Removes apostrophe-family characters
    - Removes diacritical marks (combining characters)
    - Converts to lowercase
    - Removes everything outside [a-z0-9]

    "Lovers' Leap" and "lovers leap" both become "loversleap".
    """
    if not text:
        return ""

    text = unicodedata.normalize("NFKD", str(text))
    text = _APOSTROPHES.sub("", text)
    text = "".join(c for c in text if not unicodedata.combining(c))
    return _NON_ALNUM.sub("", text.lower())


def name_tokens(name: str | None) -> list[str]:
    """Split a raw name into lower-case alphanumeric tokens."""
    if not name:
        return []
    return [t for t in _TOKEN_SPLIT.split(str(name).lower()) if t]


def sanitize_filename(name: str | None) -> str:
    """Backup file prefix for an operation name; "unnamed" when nothing is left."""
    return _UNSAFE_FILENAME.sub("_", name or "").strip("_") or "unnamed"
