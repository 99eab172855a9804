"""Client-side collections of model instances."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Sequence

from .fields import columns, get_value

MAX_WORKERS = 40


class ModelSet(list):
    """List of model instances with light client-side filtering.

    Meant for small sets (a few hundred models); use Database.filter for
    anything larger. Result order of filter() and values() is not
    guaranteed.
    """

    def __str__(self) -> str:
        return f"ModelSet: {len(self)} models"

    def filter(self, args: Sequence[str]) -> "ModelSet":
        """Keep models whose column matches one of the listed values.

        Example:
            users.filter(["name=John,Paul", "age=18,19"])
        """
        matched = ModelSet()
        lock = threading.Lock()

        for arg in args:
            key, _, raw_values = arg.partition("=")
            wanted = raw_values.split(",")

            def check(model: Any) -> None:
                for column in columns(model):
                    if column.lower() != key.lower():
                        continue
                    value = str(get_value(model, column))
                    for candidate in wanted:
                        if value == candidate:
                            with lock:
                                matched.append(model)

            with ThreadPoolExecutor(max_workers=MAX_WORKERS) as pool:
                list(pool.map(check, self))

        return matched

    def values(self, *exclude: str) -> List[Dict[str, Any]]:
        """Column/value mappings of every model, without the excluded columns.

        Raises:
            ValueError: If the set is empty
        """
        if not self:
            raise ValueError("ModelSet is empty")

        names = [c for c in columns(self[0]) if c not in exclude]
        workers = max(1, len(self) // 4) if len(self) <= 200 else MAX_WORKERS
        rows: List[Dict[str, Any]] = []
        lock = threading.Lock()

        def collect(model: Any) -> None:
            row = {column: get_value(model, column) for column in names}
            with lock:
                rows.append(row)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            list(pool.map(collect, self))
        return rows
