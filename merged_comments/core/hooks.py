"""Action/filter registry injected into the widget and the host adapters."""

import logging
from collections import defaultdict
from typing import Any, Callable, Optional

logger = logging.getLogger("merged_comments")

DEFAULT_PRIORITY = 10


class HookRegistry:
    """Named filter and action callbacks, ordered by priority then insertion.

    Filters transform a value: each callback gets the current value plus the
    extra arguments and returns the new value. Actions are fire-and-forget
    notifications.

    Usage:
        hooks = HookRegistry()
        hooks.add_filter("widget_title", lambda title, instance, id_base: title.upper())
        title = hooks.apply_filters("widget_title", "Recent", {}, "merged-recent-comments")

        hooks.add_action("wp_head", emit_styles)
        hooks.do_action("wp_head")
    """

    def __init__(self):
        self._filters: dict[str, list[tuple[int, int, Callable]]] = defaultdict(list)
        self._actions: dict[str, list[tuple[int, int, Callable]]] = defaultdict(list)
        self._action_counts: dict[str, int] = defaultdict(int)
        self._sequence = 0

    # --- filters ---

    def add_filter(self, name: str, callback: Callable, priority: int = DEFAULT_PRIORITY) -> None:
        self._add(self._filters, name, callback, priority)

    def remove_filter(self, name: str, callback: Callable) -> bool:
        """Remove every registration of callback under name.

        Returns:
            True if at least one registration was removed.
        """
        return self._remove(self._filters, name, callback)

    def has_filter(self, name: str, callback: Optional[Callable] = None) -> bool:
        return self._has(self._filters, name, callback)

    def apply_filters(self, name: str, value: Any, *args: Any) -> Any:
        for _, _, callback in self._sorted(self._filters, name):
            value = callback(value, *args)
        return value

    # --- actions ---

    def add_action(self, name: str, callback: Callable, priority: int = DEFAULT_PRIORITY) -> None:
        self._add(self._actions, name, callback, priority)

    def remove_action(self, name: str, callback: Callable) -> bool:
        return self._remove(self._actions, name, callback)

    def has_action(self, name: str, callback: Optional[Callable] = None) -> bool:
        return self._has(self._actions, name, callback)

    def do_action(self, name: str, *args: Any) -> list:
        """Run the callbacks of an action.

        Returns:
            The callbacks' return values in execution order.
        """
        self._action_counts[name] += 1
        results = []
        for _, _, callback in self._sorted(self._actions, name):
            results.append(callback(*args))
        logger.debug(f"Action '{name}' ran {len(results)} callback(s)")
        return results

    def did_action(self, name: str) -> int:
        return self._action_counts.get(name, 0)

    # --- internals ---

    def _add(self, table: dict, name: str, callback: Callable, priority: int) -> None:
        self._sequence += 1
        table[name].append((priority, self._sequence, callback))

    @staticmethod
    def _remove(table: dict, name: str, callback: Callable) -> bool:
        entries = table.get(name, [])
        kept = [entry for entry in entries if entry[2] != callback]
        if len(kept) == len(entries):
            return False
        table[name] = kept
        return True

    @staticmethod
    def _has(table: dict, name: str, callback: Optional[Callable]) -> bool:
        entries = table.get(name, [])
        if callback is None:
            return bool(entries)
        return any(entry[2] == callback for entry in entries)

    @staticmethod
    def _sorted(table: dict, name: str) -> list:
        return sorted(table.get(name, []), key=lambda entry: (entry[0], entry[1]))
