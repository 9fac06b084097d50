import logging
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional

from game.schemas import Scenario

log = logging.getLogger("crossroads.cache")

DEFAULT_CAPACITY = 6


class ScenarioCache:
    """
    Pools of ready-made scenarios keyed by "era::language", plus a per-key
    counter of prefills in flight.

    Owned by the app for the life of the process; nothing is persisted.
    All mutations are plain synchronous steps, so callers on one event loop
    never observe a half-updated pool.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self.capacity = capacity
        self._pools: Dict[str, List[Scenario]] = {}
        self._in_flight: Dict[str, int] = {}

    @staticmethod
    def make_key(era: str, language: str) -> str:
        return f"{era}::{language}"

    # ── Reads ─────────────────────────────────────────────────────────────────
    def size(self, key: str) -> int:
        return len(self._pools.get(key, []))

    def in_flight(self, key: str) -> int:
        return self._in_flight.get(key, 0)

    def stats(self) -> Dict[str, int]:
        return {key: len(pool) for key, pool in self._pools.items()}

    def needs_prefill(self, key: str) -> bool:
        return self.size(key) < self.capacity and self.in_flight(key) == 0

    # ── Take / put ────────────────────────────────────────────────────────────
    def take(self, key: str, excluded_leaders: Iterable[str],
             excluded_event_keys: Optional[Iterable[str]] = None) -> Optional[Scenario]:
        """Remove and return the oldest scenario not matching any exclusion, if there is one."""
        pool = self._pools.get(key)
        if not pool:
            return None

        leaders = set(excluded_leaders)
        event_keys = set(excluded_event_keys) if excluded_event_keys else None

        for i, scenario in enumerate(pool):
            if scenario.leader in leaders:
                continue
            if event_keys is not None and scenario.event_key in event_keys:
                continue
            del pool[i]
            log.info(f"[take] HIT {key}  leader={scenario.leader!r}  remaining={len(pool)}")
            return scenario

        log.info(f"[take] MISS {key}  all {len(pool)} cached scenarios excluded")
        return None

    def put(self, key: str, scenario: Scenario) -> bool:
        pool = self._pools.setdefault(key, [])
        if len(pool) >= self.capacity:
            log.warning(f"[put] {key} already holds {len(pool)} scenarios, dropping {scenario.leader!r}")
            return False
        pool.append(scenario)
        log.info(f"[put] {key}  leader={scenario.leader!r}  size={len(pool)}/{self.capacity}")
        return True

    # ── Prefill guard ─────────────────────────────────────────────────────────
    @contextmanager
    def prefill_slot(self, key: str) -> Iterator[None]:
        """Count one prefill as in flight for ``key`` until the block exits, however it exits."""
        self._in_flight[key] = self._in_flight.get(key, 0) + 1
        try:
            yield
        finally:
            remaining = self._in_flight.get(key, 0) - 1
            if remaining > 0:
                self._in_flight[key] = remaining
            else:
                self._in_flight.pop(key, None)
