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

"""Fulfillment service for analyzing which methods a cart can use.

This module encapsulates the logic for determining, across every store
represented in a cart, which fulfillment methods (pickup, delivery) each store
supports and which of them the whole cart can be fulfilled with.
"""

import asyncio
import logging
from typing import Optional, Sequence

from ..api_client import MarketplaceClient
from ..enums import FulfillmentMethod
from ..models import CartFulfillmentAnalysis
from ..models import CartLineItem
from ..models import FulfillmentValidation
from ..models import StoreFulfillmentInfo
from ..resilience import fetch_with_fallback
from .cart_utils import distinct_store_ids
from .cart_utils import store_name_from_cart

logger = logging.getLogger(__name__)

# Order in which common methods are listed.
_METHOD_ORDER = (
    FulfillmentMethod.PICKUP.value,
    FulfillmentMethod.DELIVERY.value,
)


class StoreFulfillmentAnalyzer:
  """Aggregates per-store selling methods for a cart."""

  def __init__(self, client: MarketplaceClient):
    self.client = client

  async def _fetch_store_info(
      self, store_id: int, store_name: Optional[str]
  ) -> StoreFulfillmentInfo:
    # An unknown capability is recorded as "supports nothing" rather than
    # guessed.
    selling_methods = await fetch_with_fallback(
        lambda: self.client.get_store_selling_methods(store_id),
        fallback=(),
        description=f"selling methods for store {store_id}",
    )
    return StoreFulfillmentInfo(
        store_id=store_id,
        store_name=store_name,
        selling_methods=frozenset(selling_methods),
    )

  async def analyze(
      self, cart_items: Sequence[CartLineItem]
  ) -> CartFulfillmentAnalysis:
    """Analyzes fulfillment options for the stores in a cart.

    Args:
      cart_items: Line items of an authenticated or guest cart. Items without
        a store id are ignored.

    Returns:
      The aggregated analysis. One capability lookup is issued per distinct
      store, concurrently; a failed lookup yields an empty capability set for
      that store instead of an error.
    """
    store_ids = distinct_store_ids(cart_items or [])
    if not store_ids:
      return self.create_empty_analysis()

    infos = await asyncio.gather(
        *(
            self._fetch_store_info(
                store_id, store_name_from_cart(cart_items, store_id)
            )
            for store_id in store_ids
        )
    )
    return self.aggregate(infos)

  @staticmethod
  def aggregate(
      infos: Sequence[StoreFulfillmentInfo],
  ) -> CartFulfillmentAnalysis:
    """Derives the cart-wide flags from per-store capability data."""
    if not infos:
      return StoreFulfillmentAnalyzer.create_empty_analysis()

    all_pickup = all(info.supports_pickup for info in infos)
    all_delivery = all(info.supports_delivery for info in infos)
    any_pickup = any(info.supports_pickup for info in infos)
    any_delivery = any(info.supports_delivery for info in infos)

    all_known = all(info.capability_known for info in infos)

    common_methods = []
    if all_known:
      supported_by_all = {
          FulfillmentMethod.PICKUP.value: all_pickup,
          FulfillmentMethod.DELIVERY.value: all_delivery,
      }
      common_methods = [m for m in _METHOD_ORDER if supported_by_all[m]]
    else:
      logger.warning(
          "Cannot determine common fulfillment methods: missing store"
          " capability data"
      )

    requires_separate_checkout = False
    if len(infos) > 1 and all_known:
      diverges = any_pickup != all_pickup or any_delivery != all_delivery
      requires_separate_checkout = (
          not (all_pickup and all_delivery)
          and diverges
          and not common_methods
      )

    return CartFulfillmentAnalysis(
        store_fulfillment_info={info.store_id: info for info in infos},
        all_stores_support_pickup=all_pickup,
        all_stores_support_delivery=all_delivery,
        any_store_supports_pickup=any_pickup,
        any_store_supports_delivery=any_delivery,
        common_fulfillment_methods=tuple(common_methods),
        requires_separate_checkout=requires_separate_checkout,
    )

  @staticmethod
  def get_recommended_fulfillment_method(
      analysis: CartFulfillmentAnalysis,
  ) -> Optional[str]:
    """Prefers delivery, then pickup, among the common methods."""
    for method in (FulfillmentMethod.DELIVERY, FulfillmentMethod.PICKUP):
      if method.value in analysis.common_fulfillment_methods:
        return method.value
    return None

  @staticmethod
  def validate_fulfillment_method(
      analysis: CartFulfillmentAnalysis, fulfillment_method: str
  ) -> FulfillmentValidation:
    """Lists the stores in the analysis that cannot honor a method."""
    # A method name no store sells, such as "shipping", fails every store.
    invalid_store_ids = tuple(
        store_id
        for store_id, info in analysis.store_fulfillment_info.items()
        if fulfillment_method not in info.selling_methods
    )
    return FulfillmentValidation(
        is_valid=not invalid_store_ids, invalid_store_ids=invalid_store_ids
    )

  @staticmethod
  def create_empty_analysis() -> CartFulfillmentAnalysis:
    return CartFulfillmentAnalysis()

  @staticmethod
  def get_store_names(analysis: CartFulfillmentAnalysis) -> dict[int, str]:
    """Display names per store, falling back to "Store #<id>"."""
    return {
        store_id: info.display_name
        for store_id, info in analysis.store_fulfillment_info.items()
    }
