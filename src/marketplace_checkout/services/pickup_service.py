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

"""Pickup location resolution for carts fulfilled by pickup."""

import asyncio
import logging
from typing import Optional, Sequence

from ..api_client import MarketplaceClient
from ..enums import PICKUP_ADDRESS_TYPES
from ..enums import StoreAddressType
from ..models import CartLineItem
from ..models import CartStoreAddresses
from ..models import PickupCapability
from ..models import StoreAddress
from ..models import StorePickupInfo
from ..resilience import fetch_with_fallback
from .cart_utils import distinct_store_ids
from .cart_utils import store_name_from_cart

logger = logging.getLogger(__name__)

_DEFAULT_PICKUP_INSTRUCTIONS = {
    StoreAddressType.PICKUP.value: (
        "Please arrive during business hours for pickup."
    ),
    StoreAddressType.BUSINESS.value: "Pick up at main business location.",
}


def filter_pickup_addresses(
    addresses: Sequence[StoreAddress],
) -> list[StoreAddress]:
  """Keeps active business and pickup addresses."""
  return [
      a
      for a in addresses
      if a.is_active and a.address_type in PICKUP_ADDRESS_TYPES
  ]


def choose_primary_pickup_address(
    pickup_addresses: Sequence[StoreAddress],
) -> Optional[StoreAddress]:
  """Picks the address representing a store's pickup location.

  Priority: explicit primary flag, then the first business address, then the
  first pickup address, then whatever comes first.
  """
  if not pickup_addresses:
    return None
  for predicate in (
      lambda a: a.is_primary,
      lambda a: a.address_type == StoreAddressType.BUSINESS.value,
      lambda a: a.address_type == StoreAddressType.PICKUP.value,
  ):
    for address in pickup_addresses:
      if predicate(address):
        return address
  return pickup_addresses[0]


class StorePickupResolver:
  """Resolves where each store in a cart can be collected from."""

  def __init__(self, client: MarketplaceClient):
    self.client = client

  async def _resolve_store(
      self, store_id: int, store_name: Optional[str]
  ) -> StorePickupInfo:
    addresses = await fetch_with_fallback(
        lambda: self.client.get_store_addresses(store_id),
        fallback=[],
        description=f"pickup addresses for store {store_id}",
    )
    pickup_addresses = filter_pickup_addresses(addresses)
    return StorePickupInfo(
        store_id=store_id,
        store_name=store_name,
        pickup_addresses=tuple(pickup_addresses),
        primary_pickup_address=choose_primary_pickup_address(pickup_addresses),
    )

  async def resolve(
      self, cart_items: Sequence[CartLineItem]
  ) -> CartStoreAddresses:
    """Fetches pickup addresses for all stores in the cart.

    Args:
      cart_items: Line items of an authenticated or guest cart.

    Returns:
      Pickup info per store. A store whose lookup fails gets an entry with no
      pickup addresses.
    """
    store_ids = distinct_store_ids(cart_items or [])
    if not store_ids:
      return CartStoreAddresses()

    infos = await asyncio.gather(
        *(
            self._resolve_store(
                store_id, store_name_from_cart(cart_items, store_id)
            )
            for store_id in store_ids
        )
    )
    return CartStoreAddresses(
        store_pickup_info={info.store_id: info for info in infos},
        has_pickup_addresses=any(info.pickup_addresses for info in infos),
        total_stores=len(store_ids),
    )

  async def get_store_primary_pickup_address(
      self, store_id: int
  ) -> Optional[StoreAddress]:
    info = await self._resolve_store(store_id, None)
    return info.primary_pickup_address


def format_store_address(address: StoreAddress) -> str:
  """Multi-line display form; the country is shown only outside the US."""
  lines = []
  if address.location_name:
    lines.append(address.location_name)
  lines.append(address.street_address)
  lines.append(f"{address.city}, {address.state} {address.zip_code}")
  if address.country and address.country not in ("United States", "US"):
    lines.append(address.country)
  return "\n".join(lines)


def format_store_address_one_line(address: StoreAddress) -> str:
  prefix = f"{address.location_name} - " if address.location_name else ""
  return (
      f"{prefix}{address.street_address}"
      f" {address.city}, {address.state} {address.zip_code}"
  )


def get_pickup_instructions(address: StoreAddress) -> str:
  if address.pickup_instructions:
    return address.pickup_instructions
  return _DEFAULT_PICKUP_INSTRUCTIONS.get(
      address.address_type, "Contact store for pickup instructions."
  )


def get_store_contact_info(address: StoreAddress) -> dict[str, str]:
  contact = {}
  if address.contact_phone:
    contact["phone"] = address.contact_phone
  if address.contact_email:
    contact["email"] = address.contact_email
  return contact


def validate_store_pickup_capability(info: StorePickupInfo) -> PickupCapability:
  if not info.pickup_addresses:
    return PickupCapability(
        can_pickup=False, reason="Store has no pickup addresses configured"
    )
  if info.primary_pickup_address is None:
    return PickupCapability(
        can_pickup=False, reason="Store has no primary pickup address"
    )
  return PickupCapability(can_pickup=True)
