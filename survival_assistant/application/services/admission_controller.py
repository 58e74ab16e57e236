"""Admission Controller: sliding-window rate limiting per (resource, identifier).

Why: Rejection is the controller's normal output, not an error. Callers turn
     ``allowed=False`` into a throttling response.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict, deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType

from survival_assistant.application.ports.clock_port import ClockPort
from survival_assistant.domain.errors import ValidationError
from survival_assistant.domain.models import RateDecision, RateLimitRule

logger = logging.getLogger(__name__)

_MINUTE = timedelta(seconds=60)

DEFAULT_RULES: Mapping[str, RateLimitRule] = MappingProxyType(
    {
        "query": RateLimitRule(30, _MINUTE),
        "voice": RateLimitRule(10, _MINUTE),
        "image": RateLimitRule(10, _MINUTE),
        "session": RateLimitRule(60, _MINUTE),
        "contexts": RateLimitRule(60, _MINUTE),
        "generative": RateLimitRule(60, _MINUTE),
    }
)
DEFAULT_RULE = RateLimitRule(100, _MINUTE)


@dataclass(frozen=True)
class RateLimitPolicy:
    """Static resource -> rule table with a catch-all default."""

    rules: Mapping[str, RateLimitRule] = field(default_factory=lambda: DEFAULT_RULES)
    default: RateLimitRule = DEFAULT_RULE

    def rule_for(self, resource: str) -> RateLimitRule:
        return self.rules.get(resource, self.default)

    def with_overrides(self, overrides: Mapping[str, RateLimitRule]) -> "RateLimitPolicy":
        merged = dict(self.rules)
        merged.update(overrides)
        default = merged.pop("default", self.default)
        return RateLimitPolicy(rules=MappingProxyType(merged), default=default)


def parse_rate_limits(text: str) -> dict[str, RateLimitRule]:
    """
    Parse ``"query=5/60,voice=2/30"`` into rules (window in seconds).

    Raises:
        ValidationError: on malformed entries or non-positive numbers.
    """
    rules: dict[str, RateLimitRule] = {}
    for raw in text.split(","):
        item = raw.strip()
        if not item:
            continue
        name, sep, value = item.partition("=")
        count, slash, window = value.partition("/")
        if not sep or not slash or not name.strip():
            raise ValidationError(f"bad rate limit entry '{item}' (expected name=N/SECONDS)")
        try:
            max_requests = int(count)
            window_s = float(window)
        except ValueError as ex:
            raise ValidationError(f"bad rate limit entry '{item}'") from ex
        if max_requests <= 0 or window_s <= 0:
            raise ValidationError(f"rate limit entry '{item}' must be positive")
        rules[name.strip()] = RateLimitRule(max_requests, timedelta(seconds=window_s))
    return rules


class _Window:
    __slots__ = ("lock", "hits", "last_seen")

    def __init__(self, now: datetime) -> None:
        self.lock = threading.Lock()
        self.hits: deque[datetime] = deque()
        self.last_seen = now

    def prune(self, now: datetime, span: timedelta) -> None:
        cutoff = now - span
        while self.hits and self.hits[0] <= cutoff:
            self.hits.popleft()


class AdmissionController:
    """
    Sliding window limiter.

    - One lock per window; the registry lock is held only to find or create
      a window, never while a window is updated.
    - ``evict_idle`` drops windows untouched for ``idle_ttl``; inserting past
      ``max_windows`` evicts the least recently used window.
    """

    def __init__(
        self,
        clock: ClockPort,
        policy: RateLimitPolicy | None = None,
        idle_ttl: timedelta = timedelta(minutes=15),
        max_windows: int = 10_000,
    ) -> None:
        self.clock = clock
        self.policy = policy or RateLimitPolicy()
        self.idle_ttl = idle_ttl
        self.max_windows = max_windows
        self._windows: OrderedDict[tuple[str, str], _Window] = OrderedDict()
        self._registry_lock = threading.Lock()

    def _window(self, key: tuple[str, str], now: datetime) -> _Window:
        with self._registry_lock:
            window = self._windows.get(key)
            if window is None:
                window = _Window(now)
                self._windows[key] = window
                while len(self._windows) > self.max_windows:
                    evicted, _ = self._windows.popitem(last=False)
                    logger.debug("Evicted rate window %s (capacity)", evicted)
            else:
                self._windows.move_to_end(key)
            return window

    def check(self, resource: str, identifier: str) -> RateDecision:
        """Record one request if the window has room and report the outcome."""
        return self._decide(resource, identifier, record=True)

    def peek(self, resource: str, identifier: str) -> RateDecision:
        """Same arithmetic as ``check`` without recording a request."""
        return self._decide(resource, identifier, record=False)

    def _decide(self, resource: str, identifier: str, record: bool) -> RateDecision:
        rule = self.policy.rule_for(resource)
        now = self.clock.now()
        window = self._window((resource, identifier), now)
        with window.lock:
            window.prune(now, rule.window)
            window.last_seen = now
            if len(window.hits) >= rule.max_requests:
                reset_at = window.hits[0] + rule.window
                return RateDecision(
                    allowed=False, remaining=0, reset_at=reset_at, retry_after=reset_at - now
                )
            if record:
                window.hits.append(now)
            reset_at = (window.hits[0] if window.hits else now) + rule.window
            return RateDecision(
                allowed=True,
                remaining=rule.max_requests - len(window.hits),
                reset_at=reset_at,
            )

    def evict_idle(self) -> int:
        """Drop windows idle longer than ``idle_ttl``; returns how many went."""
        cutoff = self.clock.now() - self.idle_ttl
        with self._registry_lock:
            stale = [k for k, w in self._windows.items() if w.last_seen < cutoff]
            for key in stale:
                del self._windows[key]
        if stale:
            logger.debug("Evicted %d idle rate windows", len(stale))
        return len(stale)

    def reset(self) -> None:
        with self._registry_lock:
            self._windows.clear()

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._windows)
