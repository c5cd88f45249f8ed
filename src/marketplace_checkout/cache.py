#   Copyright 2026 UCP Authors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""Time-bounded in-memory cache.

One instance is built per application context (see dependencies.py) and
handed to the clients that need it, so tests can use isolated caches with a
fake clock.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, Generic, Hashable, Optional
from typing import Tuple, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class TtlCache(Generic[K, V]):
  """Maps keys to values that expire `ttl_seconds` after being stored."""

  def __init__(
      self,
      ttl_seconds: float,
      clock: Callable[[], float] = time.monotonic,
  ):
    if ttl_seconds < 0:
      raise ValueError("ttl_seconds must not be negative")
    self.ttl_seconds = ttl_seconds
    self._clock = clock
    self._entries: Dict[K, Tuple[float, V]] = {}
    self._in_flight: Dict[K, "asyncio.Future[V]"] = {}

  def __len__(self) -> int:
    return len(self._entries)

  def get(self, key: K) -> Optional[V]:
    """Returns the cached value, or None when missing or expired."""
    entry = self._entries.get(key)
    if entry is None:
      return None
    expires_at, value = entry
    if self._clock() >= expires_at:
      del self._entries[key]
      return None
    return value

  def set(self, key: K, value: V) -> None:
    now = self._clock()
    self.prune(now)
    self._entries[key] = (now + self.ttl_seconds, value)

  def prune(self, now: Optional[float] = None) -> int:
    """Drops every expired entry. Returns how many were removed."""
    if now is None:
      now = self._clock()
    expired = [
        key
        for key, (expires_at, _) in self._entries.items()
        if now >= expires_at
    ]
    for key in expired:
      del self._entries[key]
    if expired:
      logger.debug("Pruned %d expired cache entries", len(expired))
    return len(expired)

  def invalidate(self, key: K) -> bool:
    """Drops a key. Returns True if it was cached."""
    return self._entries.pop(key, None) is not None

  def clear(self) -> None:
    self._entries.clear()

  async def get_or_load(self, key: K, loader: Callable[[], Awaitable[V]]) -> V:
    """Returns the cached value, loading it at most once concurrently.

    Concurrent callers for the same missing key share a single load. A
    failed load is not cached; every waiter sees the exception.

    Args:
      key: Cache key.
      loader: Coroutine factory producing the value on a miss.

    Returns:
      The cached or freshly loaded value.
    """
    cached = self.get(key)
    if cached is not None:
      return cached

    pending = self._in_flight.get(key)
    if pending is not None:
      return await pending

    future = asyncio.get_running_loop().create_future()
    self._in_flight[key] = future
    try:
      value = await loader()
    except asyncio.CancelledError:
      future.cancel()
      raise
    except Exception as e:
      future.set_exception(e)
      # Mark retrieved so an unawaited future does not log a warning.
      future.exception()
      raise
    else:
      self.set(key, value)
      future.set_result(value)
      logger.debug("Cached %r for %.0fs", key, self.ttl_seconds)
      return value
    finally:
      del self._in_flight[key]
