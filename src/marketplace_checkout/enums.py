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

"""Enumerations for the marketplace checkout core.

This module defines the fulfillment methods, address kinds and checkout
wizard steps shared by the services and the gateway.
"""

import enum


class FulfillmentMethod(str, enum.Enum):
  PICKUP = "pickup"
  DELIVERY = "delivery"


class StoreAddressType(str, enum.Enum):
  BUSINESS = "business"
  PICKUP = "pickup"
  FARMGATE = "farmgate"
  FARM_LOCATION = "farm_location"
  PICKUP_LOCATION = "pickup_location"


# Store address types a customer can collect an order from.
PICKUP_ADDRESS_TYPES = frozenset(
    {StoreAddressType.BUSINESS.value, StoreAddressType.PICKUP.value}
)


class UserAddressType(str, enum.Enum):
  SHIPPING = "shipping"
  BILLING = "billing"
  BOTH = "both"


class AddressKind(str, enum.Enum):
  """Which checkout form a selected address populates."""

  SHIPPING = "shipping"
  BILLING = "billing"


class CheckoutStep(enum.IntEnum):
  CONTACT_INFO = 0
  SHIPPING = 1
  PAYMENT = 2
  REVIEW = 3

  @property
  def title(self) -> str:
    return _STEP_TITLES[self]


_STEP_TITLES = {
    CheckoutStep.CONTACT_INFO: "Contact Info",
    CheckoutStep.SHIPPING: "Shipping",
    CheckoutStep.PAYMENT: "Payment",
    CheckoutStep.REVIEW: "Review",
}
