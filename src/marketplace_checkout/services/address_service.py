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

"""Shipping and billing address selection for checkout.

The resolver reads the customer's saved addresses, picks defaults, copies the
chosen address into the shipping or billing form, and normalizes free-text
countries to ISO-2 codes. It never creates address book entries.
"""

import logging
from typing import Optional

from ..api_client import MarketplaceClient
from ..enums import AddressKind
from ..enums import UserAddressType
from ..models import ShippingInfo
from ..models import UserAddress
from ..resilience import fetch_with_fallback

logger = logging.getLogger(__name__)

COUNTRY_CODES = {
    "united states": "US",
    "united states of america": "US",
    "usa": "US",
    "u.s.a.": "US",
    "u.s.": "US",
    "us": "US",
    "canada": "CA",
    "mexico": "MX",
    "united kingdom": "GB",
    "great britain": "GB",
    "uk": "GB",
    "germany": "DE",
    "france": "FR",
    "italy": "IT",
    "spain": "ES",
    "australia": "AU",
    "japan": "JP",
    "china": "CN",
    "india": "IN",
    "brazil": "BR",
}

_SHIPPING_TYPES = (UserAddressType.SHIPPING.value, UserAddressType.BOTH.value)


def normalize_country(country: str) -> str:
  """Maps a country name to its ISO-2 code; unknown input is upper-cased."""
  return COUNTRY_CODES.get(country.strip().lower(), country.strip().upper())


class AddressResolver:
  """Tracks the shipping/billing address choice of one checkout."""

  def __init__(self, client: MarketplaceClient):
    self.client = client
    self.user_id: Optional[int] = None
    self.addresses: list[UserAddress] = []
    self.selected_shipping_address_id: Optional[int] = None
    self.selected_billing_address_id: Optional[int] = None
    self.use_saved_address = False
    self.same_as_shipping = True
    self.shipping = ShippingInfo()
    self.billing = ShippingInfo()

  @property
  def has_saved_addresses(self) -> bool:
    return bool(self.addresses)

  def find_address(self, address_id: int) -> Optional[UserAddress]:
    for address in self.addresses:
      if address.address_id == address_id:
        return address
    return None

  async def load_addresses(self, user_id: int) -> list[UserAddress]:
    """Loads the user's address book and applies the default selection.

    A failed load leaves the list empty so the customer can type an address.
    """
    self.user_id = user_id
    self.addresses = await fetch_with_fallback(
        lambda: self.client.get_user_addresses(user_id),
        fallback=[],
        description=f"addresses for user {user_id}",
    )
    self.apply_default_selection()
    return self.addresses

  def set_addresses(self, addresses: list[UserAddress]) -> None:
    self.addresses = list(addresses)
    self.apply_default_selection()

  def apply_default_selection(self) -> None:
    """Preselects the first shipping-capable address, else the first one."""
    if not self.addresses:
      self.selected_shipping_address_id = None
      self.selected_billing_address_id = None
      self.use_saved_address = False
      return

    default = next(
        (a for a in self.addresses if a.address_type in _SHIPPING_TYPES),
        self.addresses[0],
    )
    self.use_saved_address = True
    self.select_address(default.address_id, AddressKind.SHIPPING)
    self.selected_billing_address_id = default.address_id

  def select_address(self, address_id: int, kind: AddressKind) -> bool:
    """Selects a saved address and copies it into the matching form.

    Returns:
      False if the id is not in the loaded address book.
    """
    address = self.find_address(address_id)
    if address is None:
      logger.warning("Address %s is not in the address book", address_id)
      return False

    form = ShippingInfo.from_user_address(address)
    if kind == AddressKind.SHIPPING:
      self.selected_shipping_address_id = address_id
      self.shipping = form
    else:
      self.selected_billing_address_id = address_id
      self.billing = form
    return True

  def set_same_as_shipping(self, enabled: bool) -> None:
    """Toggles "billing same as shipping".

    Enabling copies the current shipping fields into billing once; later
    shipping edits are not mirrored unless the toggle is applied again.
    """
    self.same_as_shipping = enabled
    if enabled:
      self.billing = self.shipping.model_copy()

  def normalized_countries(self) -> tuple[str, str]:
    """ISO-2 codes for the shipping and billing forms."""
    shipping = normalize_country(self.shipping.country)
    if self.same_as_shipping:
      return shipping, shipping
    return shipping, normalize_country(self.billing.country)

  async def set_default_shipping_address(self, address_id: int) -> bool:
    """Asks the backend to make an address the default for shipping."""
    if self.user_id is None:
      return False
    try:
      await self.client.set_default_shipping_address(self.user_id, address_id)
    except Exception as e:  # pylint: disable=broad-exception-caught
      logger.error("Failed to set default shipping address: %s", e)
      return False
    self.addresses = [
        a.model_copy(update={"is_primary": a.address_id == address_id})
        for a in self.addresses
    ]
    return True

  async def set_default_billing_address(self, address_id: int) -> bool:
    if self.user_id is None:
      return False
    try:
      await self.client.set_default_billing_address(self.user_id, address_id)
    except Exception as e:  # pylint: disable=broad-exception-caught
      logger.error("Failed to set default billing address: %s", e)
      return False
    return True
