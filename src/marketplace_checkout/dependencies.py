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

"""FastAPI dependencies for the checkout gateway.

This module contains dependency injection logic for the gateway endpoints:
- Application lifespan, which builds the one MarketplaceClient (and its
  capability cache) shared by all requests of an app instance.
- Service instantiation (analyzer, controller, pickup resolver, totals).
"""

import contextlib
import logging

from fastapi import Depends
from fastapi import FastAPI
from fastapi import Request

from . import config
from .api_client import MarketplaceClient
from .cache import TtlCache
from .services.cart_fulfillment import CartFulfillmentController
from .services.checkout_service import CheckoutTotalsCalculator
from .services.fulfillment_service import StoreFulfillmentAnalyzer
from .services.pickup_service import StorePickupResolver

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
  """Creates the backend client on startup and closes it on shutdown."""
  settings = config.get_settings()
  capability_cache = TtlCache(settings.capability_cache_ttl_seconds)
  client = MarketplaceClient.from_settings(settings, capability_cache)
  app.state.marketplace_client = client
  logger.info("Using marketplace backend at %s", settings.api_base_url)
  yield
  await client.aclose()


def get_marketplace_client(request: Request) -> MarketplaceClient:
  """Dependency provider for the app's MarketplaceClient."""
  return request.app.state.marketplace_client


def get_fulfillment_analyzer(
    client: MarketplaceClient = Depends(get_marketplace_client),
) -> StoreFulfillmentAnalyzer:
  return StoreFulfillmentAnalyzer(client)


def get_fulfillment_controller(
    analyzer: StoreFulfillmentAnalyzer = Depends(get_fulfillment_analyzer),
) -> CartFulfillmentController:
  """Dependency provider for a per-request CartFulfillmentController."""
  return CartFulfillmentController(analyzer)


def get_pickup_resolver(
    client: MarketplaceClient = Depends(get_marketplace_client),
) -> StorePickupResolver:
  return StorePickupResolver(client)


def get_totals_calculator(
    client: MarketplaceClient = Depends(get_marketplace_client),
) -> CheckoutTotalsCalculator:
  return CheckoutTotalsCalculator(client)
