from __future__ import annotations

from typing import Dict, List, Mapping

from textdb.core.errors import CorruptedStoreError


def contains_separator(item: str, separator: str) -> bool:
    return separator in item


def encode(mapping: Mapping[str, str], separator: str) -> str:
    """
    Flatten a mapping into one token stream: k1<sep>v1<sep>k2<sep>v2...
    No escaping is done; callers guarantee no key or value contains the separator.
    """
    return separator.join(f"{k}{separator}{v}" for k, v in mapping.items())


def split_tokens(text: str, separator: str) -> List[str]:
    if not text:
        return []
    return text.split(separator)


def decode(text: str, separator: str) -> Dict[str, str]:
    tokens = split_tokens(text, separator)
    if len(tokens) % 2 != 0:
        raise CorruptedStoreError(token_count=len(tokens))
    out: Dict[str, str] = {}
    # duplicate keys: last one wins
    for i in range(0, len(tokens), 2):
        out[tokens[i]] = tokens[i + 1]
    return out
