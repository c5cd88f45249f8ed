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

"""Degrade-to-default wrapper for lookups whose failure must not propagate."""

import logging
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def fetch_with_fallback(
    operation: Callable[[], Awaitable[T]],
    fallback: T,
    description: str,
) -> T:
  """Awaits `operation`, returning `fallback` if it raises.

  Args:
    operation: Coroutine factory performing the lookup.
    fallback: Value returned when the lookup fails.
    description: What is being fetched, used in the log line.

  Returns:
    The lookup result, or `fallback` on any exception.
  """
  try:
    return await operation()
  except Exception as e:  # pylint: disable=broad-exception-caught
    logger.error("Failed to fetch %s: %s", description, e)
    return fallback
