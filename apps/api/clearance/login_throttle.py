from __future__ import annotations

import math
import time
from collections import defaultdict, deque
from collections.abc import Callable
from threading import Lock

from clearance.config import settings
from clearance.errors import LoginThrottled


class LoginThrottle:
  """
  Sliding-window count of failed logins, kept per client address and per email.

  Only failures are recorded; a successful login clears its email's history.
  State lives in process memory.
  """

  def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
    self._clock = clock
    self._lock = Lock()
    self._failures: dict[tuple[str, str], deque[float]] = defaultdict(deque)

  def _keys(self, ip: str, email: str) -> list[tuple[tuple[str, str], int]]:
    return [
      (("ip", ip), settings.login_max_failures_per_ip),
      (("email", email), settings.login_max_failures_per_email),
    ]

  def _recent(self, key: tuple[str, str], now: float) -> deque[float]:
    q = self._failures[key]
    horizon = now - settings.login_failure_window_seconds
    while q and q[0] <= horizon:
      q.popleft()
    return q

  def check(self, *, ip: str, email: str) -> None:
    now = self._clock()
    with self._lock:
      for key, limit in self._keys(ip, email):
        limit = max(1, int(limit))
        q = self._recent(key, now)
        if len(q) >= limit:
          # Blocked until enough of the oldest failures leave the window.
          freed_at = q[len(q) - limit] + settings.login_failure_window_seconds
          raise LoginThrottled(max(1, math.ceil(freed_at - now)))

  def record_failure(self, *, ip: str, email: str) -> None:
    now = self._clock()
    with self._lock:
      for key, _ in self._keys(ip, email):
        self._failures[key].append(now)

  def clear(self, email: str | None = None) -> None:
    with self._lock:
      if email is None:
        self._failures.clear()
      else:
        self._failures.pop(("email", email), None)


login_throttle = LoginThrottle()
