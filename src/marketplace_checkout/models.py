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

"""Models for the marketplace checkout core.

Wire models mirror the marketplace backend, which serializes with PascalCase
keys. They accept either the PascalCase alias or the snake_case field name
and dump with aliases when sent back to the backend.

Derived models (fulfillment analysis, pickup resolution) are frozen: every
analysis run creates new instances instead of mutating old ones.

Checkout form state is split per wizard step (ContactInfo, ShippingInfo,
PaymentInfo) rather than one record with dozens of optional keys.
"""

from decimal import Decimal
from typing import Annotated, ClassVar, Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import PlainSerializer
from pydantic import computed_field
from pydantic.alias_generators import to_pascal

from .enums import FulfillmentMethod

# The backend expects JSON numbers for money, not the strings pydantic emits
# for Decimal in JSON mode.
Money = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]

ZERO = Decimal("0")


class BackendModel(BaseModel):
  """Base for models exchanged with the marketplace backend."""

  model_config = ConfigDict(
      alias_generator=to_pascal,
      populate_by_name=True,
      extra="ignore",
  )

  def to_backend(self) -> dict:
    """Dumps the model with backend aliases, dropping unset optionals."""
    return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Cart ---


class CartLineItem(BackendModel):
  """A purchasable item in a cart, tagged with its owning store."""

  model_config = ConfigDict(frozen=True)

  item_id: int
  quantity: int = 1
  item_price: Money = ZERO
  store_id: Optional[int] = None
  store_name: Optional[str] = None
  item_name: Optional[str] = None
  cart_item_id: Optional[int] = None


class Cart(BackendModel):
  """An authenticated or guest cart as returned by the backend."""

  cart_id: int = 0
  user_id: Optional[int] = None
  cart_items: list[CartLineItem] = Field(default_factory=list)
  subtotal: Money = ZERO
  total: Money = ZERO

  @property
  def is_empty(self) -> bool:
    return not self.cart_items


# --- Addresses ---


class StoreAddress(BackendModel):
  """A physical location registered by a store."""

  address_id: int
  store_id: Optional[int] = None
  address_type: str
  location_name: Optional[str] = None
  contact_phone: Optional[str] = None
  contact_email: Optional[str] = None
  street_address: str = ""
  city: str = ""
  state: str = ""
  zip_code: str = ""
  country: str = ""
  is_primary: bool = False
  is_active: bool = True
  pickup_instructions: Optional[str] = None
  latitude: Optional[float] = None
  longitude: Optional[float] = None


class UserAddress(BackendModel):
  """An entry of a customer's address book."""

  address_id: int
  user_id: Optional[int] = None
  address_type: str = "shipping"
  street_address: str = ""
  city: str = ""
  state: str = ""
  zip_code: str = ""
  country: str = ""
  first_name: str = ""
  last_name: str = ""
  phone: Optional[str] = None
  email: Optional[str] = None
  is_primary: bool = False
  is_active: bool = True


# --- Fulfillment analysis ---


class StoreFulfillmentInfo(BaseModel):
  """Selling methods a single store supports."""

  model_config = ConfigDict(frozen=True)

  store_id: int
  store_name: Optional[str] = None
  selling_methods: frozenset[str] = frozenset()

  @computed_field
  @property
  def supports_pickup(self) -> bool:
    return FulfillmentMethod.PICKUP.value in self.selling_methods

  @computed_field
  @property
  def supports_delivery(self) -> bool:
    return FulfillmentMethod.DELIVERY.value in self.selling_methods

  @property
  def capability_known(self) -> bool:
    return bool(self.selling_methods)

  @property
  def display_name(self) -> str:
    return self.store_name or f"Store #{self.store_id}"


class CartFulfillmentAnalysis(BaseModel):
  """Fulfillment capabilities aggregated over every store in a cart."""

  model_config = ConfigDict(frozen=True)

  store_fulfillment_info: dict[int, StoreFulfillmentInfo] = Field(
      default_factory=dict
  )
  all_stores_support_pickup: bool = False
  all_stores_support_delivery: bool = False
  any_store_supports_pickup: bool = False
  any_store_supports_delivery: bool = False
  common_fulfillment_methods: tuple[str, ...] = ()
  requires_separate_checkout: bool = False


class FulfillmentValidation(BaseModel):
  model_config = ConfigDict(frozen=True)

  is_valid: bool
  invalid_store_ids: tuple[int, ...] = ()


class StorePickupInfo(BaseModel):
  """Pickup locations resolved for one store."""

  model_config = ConfigDict(frozen=True)

  store_id: int
  store_name: Optional[str] = None
  pickup_addresses: tuple[StoreAddress, ...] = ()
  primary_pickup_address: Optional[StoreAddress] = None


class CartStoreAddresses(BaseModel):
  model_config = ConfigDict(frozen=True)

  store_pickup_info: dict[int, StorePickupInfo] = Field(default_factory=dict)
  has_pickup_addresses: bool = False
  total_stores: int = 0


class PickupCapability(BaseModel):
  model_config = ConfigDict(frozen=True)

  can_pickup: bool
  reason: Optional[str] = None


# --- Checkout step forms ---


class StepForm(BaseModel):
  """A checkout step's form; reports the required fields still empty."""

  model_config = ConfigDict(validate_assignment=True)

  REQUIRED_FIELDS: ClassVar[dict[str, str]] = {}

  def missing_fields(self) -> list[str]:
    """Returns the labels of required fields that are blank."""
    return [
        label
        for name, label in self.REQUIRED_FIELDS.items()
        if not str(getattr(self, name) or "").strip()
    ]


class ContactInfo(StepForm):
  REQUIRED_FIELDS: ClassVar[dict[str, str]] = {
      "email": "Email",
      "phone": "Phone Number",
  }

  email: str = ""
  phone: str = ""


class ShippingInfo(StepForm):
  """Postal fields used for both the shipping and the billing form."""

  REQUIRED_FIELDS: ClassVar[dict[str, str]] = {
      "first_name": "First Name",
      "last_name": "Last Name",
      "address": "Address",
      "city": "City",
      "state": "State",
      "zip_code": "ZIP Code",
      "country": "Country",
  }

  first_name: str = ""
  last_name: str = ""
  address: str = ""
  city: str = ""
  state: str = ""
  zip_code: str = ""
  country: str = "United States"

  @classmethod
  def from_user_address(cls, address: UserAddress) -> "ShippingInfo":
    return cls(
        first_name=address.first_name,
        last_name=address.last_name,
        address=address.street_address,
        city=address.city,
        state=address.state,
        zip_code=address.zip_code,
        country=address.country,
    )


class PaymentInfo(StepForm):
  REQUIRED_FIELDS: ClassVar[dict[str, str]] = {
      "card_number": "Card Number",
      "expiry_date": "Expiry Date",
      "cvv": "CVV",
      "name_on_card": "Name on Card",
  }

  card_number: str = ""
  expiry_date: str = ""
  cvv: str = ""
  name_on_card: str = ""


# --- Checkout backend payloads ---


class CheckoutTotals(BackendModel):
  subtotal: Money = ZERO
  tax_amount: Money = ZERO
  shipping_cost: Money = ZERO
  discount_amount: Money = ZERO
  total: Money = ZERO


class CheckoutFieldError(BackendModel):
  field: str
  message: str
  code: Optional[str] = None


class CheckoutValidationResponse(BackendModel):
  is_valid: bool
  errors: list[CheckoutFieldError] = Field(default_factory=list)
  totals: Optional[CheckoutTotals] = None


class GuestAddressDetails(BackendModel):
  street_address: str
  city: str
  state: str
  zip_code: str
  country: str
  first_name: Optional[str] = None
  last_name: Optional[str] = None
  phone: Optional[str] = None
  email: Optional[str] = None


class PaymentDetails(BackendModel):
  card_number: str
  expiry_month: int
  expiry_year: int
  cvv: str
  cardholder_name: str
  customer_email: Optional[str] = None
  customer_phone: Optional[str] = None


class CheckoutRequest(BackendModel):
  """A fully assembled order submission."""

  user_id: Optional[int] = None
  guest_id: Optional[int] = None
  cart_id: Optional[int] = None
  shipping_address_id: Optional[int] = None
  billing_address_id: Optional[int] = None
  payment_method: str = "credit_card"
  fulfillment_method: str
  customer_note: Optional[str] = None
  is_tax_exempt: bool = False
  payment_details: Optional[PaymentDetails] = None
  pickup_location_id: Optional[int] = None
  delivery_instructions: Optional[str] = None
  shipping_address: Optional[GuestAddressDetails] = None
  billing_address: Optional[GuestAddressDetails] = None


class CheckoutResponse(BackendModel):
  order_id: int
  order_number: str = ""
  status: str = ""
  payment_status: str = ""
  subtotal: Money = ZERO
  tax_amount: Money = ZERO
  shipping_cost: Money = ZERO
  discount_amount: Money = ZERO
  total: Money = ZERO
