from __future__ import annotations

from textdb.core.errors import NameValidationError

# Union of what Windows and POSIX refuse in a single path component.
FORBIDDEN_CHARS = frozenset('<>:"/\\|?*') | frozenset(chr(i) for i in range(32))

RESERVED_NAMES = frozenset(
    {"CON", "PRN", "AUX", "NUL"}
    | {f"COM{i}" for i in range(1, 10)}
    | {f"LPT{i}" for i in range(1, 10)}
)

MAX_NAME_LENGTH = 200


def validate_store_name(name: str) -> str:
    if not isinstance(name, str):
        raise NameValidationError("Store name must be a string.", name=repr(name))
    if not name or not name.strip():
        raise NameValidationError("Store name cannot be empty.", name=name)
    forbidden = sorted({c for c in name if c in FORBIDDEN_CHARS})
    if forbidden:
        shown = ", ".join(repr(c) for c in forbidden)
        raise NameValidationError(f"Name cannot contain the following characters: {shown}", name=name, forbidden=forbidden)
    if name in {".", ".."} or name.endswith((".", " ")):
        raise NameValidationError("Store name cannot end with a dot or a space.", name=name)
    if name.split(".")[0].upper() in RESERVED_NAMES:
        raise NameValidationError(f"Store name '{name}' is reserved by the operating system.", name=name)
    if len(name) > MAX_NAME_LENGTH:
        raise NameValidationError(f"Store name is longer than {MAX_NAME_LENGTH} characters.", name=name)
    return name
