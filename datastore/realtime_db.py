from __future__ import annotations

import copy
import json
import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock, RLock
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from settings import get_settings

logger = logging.getLogger(__name__)

ValueCallback = Callable[[Any], None]


def _split_path(path: str) -> Tuple[str, ...]:
    return tuple(part for part in path.strip("/").split("/") if part)


def _overlaps(left: Tuple[str, ...], right: Tuple[str, ...]) -> bool:
    shortest = min(len(left), len(right))
    return left[:shortest] == right[:shortest]


class Subscription:
    """Handle returned by :meth:`MockRealtimeDatabase.subscribe`."""

    def __init__(self, database: "MockRealtimeDatabase", path: Tuple[str, ...], callback: ValueCallback) -> None:
        self._database = database
        self.path = path
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self._database._detach(self)


class MockRealtimeDatabase:
    """In-process stand-in for a hosted realtime key-value tree.

    Subscribers receive the complete value at their path immediately and again
    after any write touching it. Deliveries are serialized: a write returns
    only after every affected subscriber has been called.
    """

    def __init__(self, name: str, seed_path: Optional[Path] = None) -> None:
        self.name = name
        self.seed_path = seed_path
        self._root: Dict[str, Any] = {}
        self._subscriptions: List[Subscription] = []
        self._lock = Lock()
        self._dispatch_lock = RLock()
        if seed_path:
            self._load_seed()

    def get(self, path: str) -> Any:
        parts = _split_path(path)
        with self._lock:
            return copy.deepcopy(self._lookup(parts))

    def set(self, path: str, value: Any) -> None:
        parts = _split_path(path)
        if not parts:
            raise ValueError("Cannot overwrite the database root.")
        with self._lock:
            self._assign(parts, copy.deepcopy(value))
        self._notify(parts)

    def update(self, path: str, values: Mapping[str, Any]) -> None:
        parts = _split_path(path)
        with self._lock:
            for key, value in values.items():
                child = parts + _split_path(key)
                if child == parts:
                    raise ValueError("Update keys must be non-empty.")
                self._assign(child, copy.deepcopy(value))
        self._notify(parts)

    def remove(self, path: str) -> bool:
        """Delete the value at ``path``; return False when nothing was there."""
        parts = _split_path(path)
        with self._lock:
            if self._lookup(parts) is None:
                return False
            self._assign(parts, None)
        self._notify(parts)
        return True

    def subscribe(self, path: str, callback: ValueCallback) -> Subscription:
        subscription = Subscription(self, _split_path(path), callback)
        with self._dispatch_lock:
            with self._lock:
                self._subscriptions.append(subscription)
                value = copy.deepcopy(self._lookup(subscription.path))
            callback(value)
        return subscription

    def _detach(self, subscription: Subscription) -> None:
        # Taking the dispatch lock waits out a delivery already in progress.
        with self._dispatch_lock:
            with self._lock:
                subscription.active = False
                if subscription in self._subscriptions:
                    self._subscriptions.remove(subscription)

    def _notify(self, changed: Tuple[str, ...]) -> None:
        with self._dispatch_lock:
            with self._lock:
                pending = [
                    (subscription, copy.deepcopy(self._lookup(subscription.path)))
                    for subscription in self._subscriptions
                    if _overlaps(subscription.path, changed)
                ]
            for subscription, value in pending:
                if not subscription.active:
                    continue
                try:
                    subscription.callback(value)
                except Exception:
                    logger.exception(
                        "Subscriber callback failed", extra={"path": "/".join(subscription.path)}
                    )

    def _lookup(self, parts: Tuple[str, ...]) -> Any:
        node: Any = self._root
        for part in parts:
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        if isinstance(node, dict) and not node:
            return None
        return node

    def _assign(self, parts: Tuple[str, ...], value: Any) -> None:
        node = self._root
        trail: List[Tuple[Dict[str, Any], str]] = []
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                if value is None:
                    return
                child = {}
                node[part] = child
            trail.append((node, part))
            node = child

        leaf = parts[-1]
        if value is None:
            node.pop(leaf, None)
        else:
            node[leaf] = value

        # Prune parents emptied by a removal, as the hosted store does.
        for parent, part in reversed(trail):
            if parent[part]:
                break
            del parent[part]

    def _load_seed(self) -> None:
        if not self.seed_path or not self.seed_path.exists():
            return

        try:
            raw = self.seed_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable seed file %s", self.seed_path, extra={"reason": str(exc)})
            return

        if isinstance(data, dict):
            self._root = data


@lru_cache
def build_default_database(
    name: Optional[str] = None,
    seed_path: Optional[str] = None,
) -> MockRealtimeDatabase:
    settings = get_settings()
    seed = settings.stream_seed_path if seed_path is None else seed_path
    return MockRealtimeDatabase(
        name=name or "telemetry",
        seed_path=Path(seed) if seed else None,
    )
