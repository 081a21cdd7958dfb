"""
Console command that drives a store from free-form text arguments.

    tdb set <key> <value>
    tdb add <key> <value>
    tdb remove <key>
    tdb read <key>
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

from textdb.core.errors import TextDBError
from textdb.core.store.database import TextDatabase
from textdb.core.store.registry import open_store


class StoreCommand:
    command = "TextDatabaseTest"
    description = "TextDatabase test command"
    aliases: List[str] = ["tdb"]
    usage: List[str] = ["set|add|remove|read", "arguments"]

    def __init__(self, store_name: str = "Test", *, opener: Optional[Callable[[str], TextDatabase]] = None):
        self.store_name = store_name
        self._opener = opener or open_store

    def matches(self, word: str) -> bool:
        w = word.lower()
        return w == self.command.lower() or w in {a.lower() for a in self.aliases}

    def usage_line(self) -> str:
        return f"{self.aliases[0]} " + " ".join(f"<{u}>" for u in self.usage)

    def execute(self, arguments: Sequence[str]) -> Tuple[bool, str]:
        if len(arguments) < 2:
            return False, "This command requires at least 2 arguments"

        db = self._opener(self.store_name)
        op = arguments[0].lower()
        try:
            if op in {"add", "set"}:
                if len(arguments) < 3:
                    return False, f"'{op}' requires a key and a value"
                if op == "add":
                    db.add(arguments[1], arguments[2])
                else:
                    db.set(arguments[1], arguments[2])
            elif op == "remove":
                db.remove(arguments[1])
            elif op == "read":
                return True, db.get(arguments[1])
            else:
                return False, "Invalid operation"
        except TextDBError as e:
            return False, e.user_message
        return True, "Done"
