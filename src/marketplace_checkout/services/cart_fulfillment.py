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

"""Cart fulfillment controller.

Keeps the fulfillment analysis of the current cart up to date and answers the
questions the checkout flow asks of it: which methods can be offered, which
one to preselect, whether a chosen method works for every store, and which
address forms to show.

The analysis is derived state. It is recomputed whenever the cart's item set
or store composition changes, and a run that is superseded by a newer one
while awaiting lookups is discarded (last write wins).
"""

import logging
from typing import Optional, Sequence

from ..enums import FulfillmentMethod
from ..models import Cart
from ..models import CartFulfillmentAnalysis
from ..models import CartLineItem
from ..models import FulfillmentValidation
from .cart_utils import cart_signature
from .fulfillment_service import StoreFulfillmentAnalyzer

logger = logging.getLogger(__name__)


def select_cart(cart: Optional[Cart], guest_cart: Optional[Cart]) -> Cart:
  """Prefers a non-empty authenticated cart, then a non-empty guest cart."""
  if cart is not None and cart.cart_items:
    return cart
  if guest_cart is not None and guest_cart.cart_items:
    return guest_cart
  if cart is not None:
    return cart
  return guest_cart if guest_cart is not None else Cart()


def select_cart_items(
    cart: Optional[Cart], guest_cart: Optional[Cart]
) -> list[CartLineItem]:
  return list(select_cart(cart, guest_cart).cart_items)


class CartFulfillmentController:
  """Decision surface over the fulfillment analysis of the current cart."""

  def __init__(self, analyzer: StoreFulfillmentAnalyzer):
    self.analyzer = analyzer
    self.analysis: Optional[CartFulfillmentAnalysis] = None
    self.is_loading = False
    self.error: Optional[str] = None
    self._cart_items: list[CartLineItem] = []
    self._signature: Optional[frozenset] = None
    self._generation = 0

  async def update_cart(
      self,
      cart: Optional[Cart] = None,
      guest_cart: Optional[Cart] = None,
  ) -> CartFulfillmentAnalysis:
    """Records the current cart, re-analyzing only if its makeup changed."""
    items = select_cart_items(cart, guest_cart)
    signature = cart_signature(items)
    if self.analysis is not None and signature == self._signature:
      return self.analysis
    self._cart_items = items
    self._signature = signature
    return await self.refresh()

  async def refresh(self) -> CartFulfillmentAnalysis:
    """Re-runs the analysis for the recorded cart.

    Returns:
      The analysis now held by the controller. Analyzer failures never
      propagate; they leave the canonical empty analysis and set `error`.
    """
    self._generation += 1
    generation = self._generation
    items = list(self._cart_items)

    if not items:
      self.analysis = StoreFulfillmentAnalyzer.create_empty_analysis()
      self.error = None
      self.is_loading = False
      return self.analysis

    self.is_loading = True
    self.error = None
    error = None
    try:
      result = await self.analyzer.analyze(items)
    except Exception as e:  # pylint: disable=broad-exception-caught
      logger.error("Failed to analyze cart fulfillment: %s", e)
      error = str(e) or "Failed to load fulfillment options"
      result = StoreFulfillmentAnalyzer.create_empty_analysis()

    if generation != self._generation:
      logger.debug("Discarding superseded fulfillment analysis %d", generation)
      return self.analysis or result

    self.analysis = result
    self.error = error
    self.is_loading = False
    return result

  @property
  def cart_items(self) -> Sequence[CartLineItem]:
    return tuple(self._cart_items)

  @property
  def available_fulfillment_methods(self) -> tuple[str, ...]:
    if self.analysis is None:
      return ()
    return self.analysis.common_fulfillment_methods

  @property
  def recommended_fulfillment_method(self) -> Optional[str]:
    if self.analysis is None:
      return None
    return StoreFulfillmentAnalyzer.get_recommended_fulfillment_method(
        self.analysis
    )

  @property
  def can_choose_fulfillment(self) -> bool:
    return len(self.available_fulfillment_methods) > 1

  @property
  def requires_separate_checkout(self) -> bool:
    return bool(self.analysis and self.analysis.requires_separate_checkout)

  def validate_fulfillment_method(self, method: str) -> FulfillmentValidation:
    if self.analysis is None:
      return FulfillmentValidation(is_valid=False)
    return StoreFulfillmentAnalyzer.validate_fulfillment_method(
        self.analysis, method
    )

  def show_delivery_address(
      self, selected_method: Optional[str] = None
  ) -> bool:
    """Whether the delivery address form should be shown.

    With a selected method the answer is exact. Before the customer chooses,
    it is shown if any store could deliver.
    """
    if self.analysis is None:
      return True
    if selected_method:
      return selected_method == FulfillmentMethod.DELIVERY.value
    return self.analysis.any_store_supports_delivery

  def show_pickup_options(self, selected_method: Optional[str] = None) -> bool:
    if self.analysis is None:
      return False
    if selected_method:
      return selected_method == FulfillmentMethod.PICKUP.value
    return self.analysis.any_store_supports_pickup

  @property
  def fulfillment_warning(self) -> Optional[str]:
    """Banner text suggesting a split cart when no method fits every store."""
    if not self.requires_separate_checkout:
      return None
    names = StoreFulfillmentAnalyzer.get_store_names(self.analysis)
    parts = []
    for method in (FulfillmentMethod.DELIVERY, FulfillmentMethod.PICKUP):
      supporting = [
          names[store_id]
          for store_id, info in self.analysis.store_fulfillment_info.items()
          if method.value in info.selling_methods
      ]
      if supporting:
        parts.append(f"{method.value} from {', '.join(supporting)}")
    return (
        "The stores in your cart do not share a fulfillment method"
        f" (only {'; '.join(parts)}). Consider splitting your cart into"
        " separate orders."
    )
