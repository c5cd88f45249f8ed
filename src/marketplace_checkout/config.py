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

"""Shared configuration for the marketplace checkout core and gateway."""

import dataclasses
from importlib import metadata

from absl import flags

FLAGS = flags.FLAGS

DEFAULT_API_BASE_URL = "https://localhost:7008"
DEFAULT_API_TIMEOUT_SECONDS = 30.0
DEFAULT_CAPABILITY_CACHE_TTL_SECONDS = 300.0
DEFAULT_MIN_CARD_EXPIRY_YEAR = 2024

# Define flags only if they haven't been defined yet (to avoid duplicates
# during tests or re-imports)
try:
  flags.DEFINE_string(
      "api_base_url",
      DEFAULT_API_BASE_URL,
      "Base URL of the marketplace REST backend",
  )
  flags.DEFINE_float(
      "api_timeout_seconds",
      DEFAULT_API_TIMEOUT_SECONDS,
      "Timeout applied to every backend request",
  )
  flags.DEFINE_float(
      "capability_cache_ttl_seconds",
      DEFAULT_CAPABILITY_CACHE_TTL_SECONDS,
      "How long store selling methods are cached",
  )
  flags.DEFINE_integer(
      "min_card_expiry_year",
      DEFAULT_MIN_CARD_EXPIRY_YEAR,
      "Earliest card expiry year accepted at checkout",
  )
  flags.DEFINE_integer("port", None, "Port to run the gateway on")
except flags.DuplicateFlagError:
  pass


@dataclasses.dataclass(frozen=True)
class Settings:
  """Resolved runtime settings."""

  api_base_url: str = DEFAULT_API_BASE_URL
  api_timeout_seconds: float = DEFAULT_API_TIMEOUT_SECONDS
  capability_cache_ttl_seconds: float = DEFAULT_CAPABILITY_CACHE_TTL_SECONDS
  min_card_expiry_year: int = DEFAULT_MIN_CARD_EXPIRY_YEAR


def get_settings() -> Settings:
  """Reads settings from parsed flags, or defaults when flags are unparsed.

  Library callers and tests never parse absl flags, so reading FLAGS directly
  would raise UnparsedFlagAccessError.
  """
  if not FLAGS.is_parsed():
    return Settings()
  return Settings(
      api_base_url=FLAGS.api_base_url.rstrip("/"),
      api_timeout_seconds=FLAGS.api_timeout_seconds,
      capability_cache_ttl_seconds=FLAGS.capability_cache_ttl_seconds,
      min_card_expiry_year=FLAGS.min_card_expiry_year,
  )


def get_server_version() -> str:
  """Reads the installed distribution version of the gateway."""
  try:
    return metadata.version("marketplace-checkout")
  except metadata.PackageNotFoundError:
    return "0.0.0"
