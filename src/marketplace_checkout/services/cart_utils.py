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

"""Helpers for deriving store composition from cart items."""

from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..models import CartLineItem


def distinct_store_ids(cart_items: Iterable[CartLineItem]) -> list[int]:
  """Returns each store id once, in first-seen order, skipping untagged."""
  return list(
      dict.fromkeys(
          item.store_id for item in cart_items if item.store_id is not None
      )
  )


def store_name_from_cart(
    cart_items: Sequence[CartLineItem], store_id: int
) -> Optional[str]:
  for item in cart_items:
    if item.store_id == store_id and item.store_name:
      return item.store_name
  return None


def cart_signature(cart_items: Iterable[CartLineItem]) -> frozenset:
  """Identifies the item set and store composition of a cart.

  Quantity changes do not alter fulfillment, so they are left out.
  """
  return frozenset((item.item_id, item.store_id) for item in cart_items)


def items_subtotal(cart_items: Iterable[CartLineItem]) -> Decimal:
  return sum(
      (item.item_price * item.quantity for item in cart_items), Decimal("0")
  )
