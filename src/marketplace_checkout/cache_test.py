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

"""Tests for the TTL cache."""

import asyncio

from absl.testing import absltest
from marketplace_checkout.cache import TtlCache


class FakeClock:

  def __init__(self):
    self.now = 1000.0

  def __call__(self) -> float:
    return self.now


class TtlCacheTest(absltest.TestCase):

  def setUp(self) -> None:
    super().setUp()
    self.clock = FakeClock()
    self.cache = TtlCache(60.0, clock=self.clock)

  def test_value_expires_after_ttl(self) -> None:
    self.cache.set(1, ("pickup",))
    self.clock.now += 59
    self.assertEqual(self.cache.get(1), ("pickup",))
    self.clock.now += 1
    self.assertIsNone(self.cache.get(1))
    self.assertLen(self.cache, 0)

  def test_set_prunes_expired_entries(self) -> None:
    self.cache.set(1, ("pickup",))
    self.cache.set(2, ("delivery",))
    self.clock.now += 30
    self.cache.set(3, ("pickup",))
    self.clock.now += 30

    self.cache.set(4, ("delivery",))

    self.assertLen(self.cache, 2)
    self.assertEqual(self.cache.get(3), ("pickup",))

  def test_prune(self) -> None:
    self.cache.set(1, "a")
    self.assertEqual(self.cache.prune(), 0)
    self.clock.now += 60
    self.assertEqual(self.cache.prune(), 1)
    self.assertLen(self.cache, 0)

  def test_invalidate_and_clear(self) -> None:
    self.cache.set(1, "a")
    self.cache.set(2, "b")
    self.assertTrue(self.cache.invalidate(1))
    self.assertFalse(self.cache.invalidate(1))
    self.cache.clear()
    self.assertIsNone(self.cache.get(2))

  def test_negative_ttl_is_rejected(self) -> None:
    with self.assertRaises(ValueError):
      TtlCache(-1)

  def test_get_or_load_caches_result(self) -> None:
    loads = []

    async def loader():
      loads.append(1)
      return ("delivery",)

    async def run():
      first = await self.cache.get_or_load(7, loader)
      second = await self.cache.get_or_load(7, loader)
      return first, second

    self.assertEqual(asyncio.run(run()), (("delivery",), ("delivery",)))
    self.assertLen(loads, 1)

  def test_empty_value_is_cached(self) -> None:
    loads = []

    async def loader():
      loads.append(1)
      return ()

    async def run():
      await self.cache.get_or_load(7, loader)
      await self.cache.get_or_load(7, loader)

    asyncio.run(run())
    self.assertLen(loads, 1)

  def test_reloads_after_expiry(self) -> None:
    loads = []

    async def loader():
      loads.append(1)
      return len(loads)

    async def run():
      await self.cache.get_or_load("k", loader)
      self.clock.now += 61
      return await self.cache.get_or_load("k", loader)

    self.assertEqual(asyncio.run(run()), 2)

  def test_concurrent_loads_share_one_call(self) -> None:
    loads = []

    async def loader():
      loads.append(1)
      await asyncio.sleep(0.01)
      return "value"

    async def run():
      return await asyncio.gather(
          *(self.cache.get_or_load("k", loader) for _ in range(5))
      )

    self.assertEqual(asyncio.run(run()), ["value"] * 5)
    self.assertLen(loads, 1)

  def test_failed_load_is_not_cached(self) -> None:
    attempts = []

    async def loader():
      attempts.append(1)
      if len(attempts) == 1:
        raise RuntimeError("backend down")
      return "ok"

    async def run():
      with self.assertRaises(RuntimeError):
        await self.cache.get_or_load("k", loader)
      return await self.cache.get_or_load("k", loader)

    self.assertEqual(asyncio.run(run()), "ok")
    self.assertLen(attempts, 2)


if __name__ == "__main__":
  absltest.main()
