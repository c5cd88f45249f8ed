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

"""Checkout service for driving a checkout session from cart to order.

This module provides the `CheckoutSession` class, which ties together the
cart fulfillment controller, address selection, pickup resolution, totals
calculation and order submission for one customer checkout.

Key responsibilities include:
- Gating the linear ContactInfo -> Shipping -> Payment -> Review wizard.
- Preselecting the recommended fulfillment method.
- Loading pickup locations when the customer picks up.
- Requesting server-computed totals, with a local estimate as fallback.
- Assembling and submitting the order.
"""

from decimal import Decimal
import logging
from typing import Optional

from ..api_client import MarketplaceClient
from ..enums import CheckoutStep
from ..enums import FulfillmentMethod
from ..exceptions import CheckoutError
from ..exceptions import InvalidRequestError
from ..exceptions import OrderSubmissionError
from ..models import Cart
from ..models import CartStoreAddresses
from ..models import CheckoutRequest
from ..models import CheckoutResponse
from ..models import CheckoutTotals
from ..models import CheckoutValidationResponse
from ..models import ContactInfo
from ..models import GuestAddressDetails
from ..models import PaymentDetails
from ..models import PaymentInfo
from ..models import ShippingInfo
from ..resilience import fetch_with_fallback
from . import step_validation
from .address_service import AddressResolver
from .cart_fulfillment import CartFulfillmentController
from .cart_fulfillment import select_cart
from .cart_utils import items_subtotal
from .pickup_service import StorePickupResolver
from .step_validation import StepValidation

logger = logging.getLogger(__name__)

DEFAULT_DELIVERY_SHIPPING_COST = Decimal("5.99")


class CheckoutTotalsCalculator:
  """Prices a cart; the backend is authoritative when it can be asked."""

  def __init__(self, client: MarketplaceClient):
    self.client = client

  @staticmethod
  def estimate(cart: Cart, fulfillment_method: Optional[str]) -> CheckoutTotals:
    """Local estimate without tax, used before an address is known."""
    subtotal = items_subtotal(cart.cart_items)
    shipping = (
        Decimal("0")
        if fulfillment_method == FulfillmentMethod.PICKUP.value
        else DEFAULT_DELIVERY_SHIPPING_COST
    )
    return CheckoutTotals(
        subtotal=subtotal,
        shipping_cost=shipping,
        total=subtotal + shipping,
    )

  async def calculate(
      self,
      cart: Cart,
      fulfillment_method: Optional[str],
      zip_code: Optional[str] = None,
      shipping_address_id: Optional[int] = None,
      billing_address_id: Optional[int] = None,
      user_id: Optional[int] = None,
      guest_id: Optional[int] = None,
  ) -> CheckoutTotals:
    """Returns totals from the backend, or the local estimate.

    The backend is only asked once the cart exists server-side and a ZIP code
    is known; a failed request falls back to the estimate.
    """
    fallback = self.estimate(cart, fulfillment_method)
    if not cart.cart_id or not zip_code:
      return fallback
    return await fetch_with_fallback(
        lambda: self.client.get_checkout_totals(
            cart_id=cart.cart_id,
            shipping_address_id=shipping_address_id,
            billing_address_id=billing_address_id,
            customer_id=user_id,
            guest_id=guest_id,
        ),
        fallback=fallback,
        description=f"checkout totals for cart {cart.cart_id}",
    )


class CheckoutWizard:
  """Step state machine: strictly linear forward, free backward."""

  def __init__(
      self,
      addresses: AddressResolver,
      min_expiry_year: Optional[int] = None,
  ):
    self.addresses = addresses
    self.min_expiry_year = min_expiry_year
    self.contact = ContactInfo()
    self.payment = PaymentInfo()
    self.fulfillment_method: Optional[str] = None
    self.step = CheckoutStep.CONTACT_INFO

  def validate_step(self, step: CheckoutStep) -> StepValidation:
    if step == CheckoutStep.CONTACT_INFO:
      return step_validation.validate_contact(self.contact)
    if step == CheckoutStep.SHIPPING:
      return step_validation.validate_shipping(
          self.addresses.shipping,
          self.fulfillment_method,
          use_saved_address=self.addresses.use_saved_address,
          has_saved_addresses=self.addresses.has_saved_addresses,
          selected_shipping_address_id=(
              self.addresses.selected_shipping_address_id
          ),
      )
    if step == CheckoutStep.PAYMENT:
      return step_validation.validate_payment(
          self.payment, self.min_expiry_year
      )
    return StepValidation.ok()

  def is_step_valid(self, step: CheckoutStep) -> bool:
    return self.validate_step(step).is_valid

  def validation_message(self, step: Optional[CheckoutStep] = None) -> str:
    return self.validate_step(self.step if step is None else step).message

  def next_step(self) -> bool:
    """Advances one step if the current one validates."""
    if self.step == CheckoutStep.REVIEW or not self.is_step_valid(self.step):
      return False
    self.step = CheckoutStep(self.step + 1)
    return True

  def go_back(self, to_step: Optional[CheckoutStep] = None) -> bool:
    """Returns to the previous step, or to any earlier `to_step`."""
    target = CheckoutStep(self.step - 1) if to_step is None else to_step
    if self.step == CheckoutStep.CONTACT_INFO or target >= self.step:
      return False
    self.step = target
    return True

  @property
  def can_place_order(self) -> bool:
    return self.step == CheckoutStep.REVIEW and all(
        self.is_step_valid(step) for step in CheckoutStep
    )


class CheckoutSession:
  """One customer's checkout, for an authenticated user or a guest."""

  def __init__(
      self,
      client: MarketplaceClient,
      fulfillment: CartFulfillmentController,
      addresses: AddressResolver,
      pickup: StorePickupResolver,
      totals_calculator: CheckoutTotalsCalculator,
      min_expiry_year: Optional[int] = None,
  ):
    self.client = client
    self.fulfillment = fulfillment
    self.addresses = addresses
    self.pickup = pickup
    self.totals_calculator = totals_calculator
    self.wizard = CheckoutWizard(addresses, min_expiry_year)
    self.cart = Cart()
    self.user_id: Optional[int] = None
    self.guest_id: Optional[int] = None
    self.store_addresses: Optional[CartStoreAddresses] = None
    self.totals = CheckoutTotals()

  @property
  def fulfillment_method(self) -> Optional[str]:
    return self.wizard.fulfillment_method

  async def load(
      self,
      cart: Optional[Cart] = None,
      guest_cart: Optional[Cart] = None,
      user_id: Optional[int] = None,
      guest_id: Optional[int] = None,
  ) -> None:
    """Starts the session: analyzes the cart and preselects defaults."""
    self.user_id = user_id
    self.guest_id = guest_id
    self.cart = select_cart(cart, guest_cart)

    await self.fulfillment.update_cart(cart, guest_cart)
    if user_id is not None:
      await self.addresses.load_addresses(user_id)

    recommended = self.fulfillment.recommended_fulfillment_method
    if recommended is not None:
      await self.select_fulfillment_method(recommended)
    else:
      await self.refresh_totals()

  async def select_fulfillment_method(self, method: str) -> None:
    """Switches fulfillment, loading pickup locations when picking up."""
    self.wizard.fulfillment_method = method
    if method == FulfillmentMethod.PICKUP.value and not self.cart.is_empty:
      self.store_addresses = await self.pickup.resolve(self.cart.cart_items)
    else:
      self.store_addresses = None
    await self.refresh_totals()

  async def refresh_totals(self) -> CheckoutTotals:
    self.totals = await self.totals_calculator.calculate(
        self.cart,
        self.fulfillment_method,
        zip_code=self.addresses.shipping.zip_code,
        shipping_address_id=self.addresses.selected_shipping_address_id,
        billing_address_id=self.addresses.selected_billing_address_id,
        user_id=self.user_id,
        guest_id=self.guest_id,
    )
    return self.totals

  def _pickup_location_id(self) -> Optional[int]:
    # The request carries a single pickup location, so it is only set when
    # exactly one store resolved one.
    if self.store_addresses is None:
      return None
    primaries = [
        info.primary_pickup_address
        for info in self.store_addresses.store_pickup_info.values()
        if info.primary_pickup_address is not None
    ]
    if len(primaries) != 1:
      return None
    return primaries[0].address_id

  def _guest_address(
      self, form: ShippingInfo, country: str
  ) -> GuestAddressDetails:
    return GuestAddressDetails(
        street_address=form.address,
        city=form.city,
        state=form.state,
        zip_code=form.zip_code,
        country=country,
        first_name=form.first_name or None,
        last_name=form.last_name or None,
        phone=self.wizard.contact.phone or None,
        email=self.wizard.contact.email or None,
    )

  def build_checkout_request(self) -> CheckoutRequest:
    """Assembles the order submission from the session state."""
    payment = self.wizard.payment
    expiry = step_validation.parse_expiry(
        payment.expiry_date, self.wizard.min_expiry_year
    )
    if expiry is None:
      raise InvalidRequestError("Card expiry date is invalid")

    addresses = self.addresses
    method = self.fulfillment_method or FulfillmentMethod.DELIVERY.value
    is_delivery = method == FulfillmentMethod.DELIVERY.value
    shipping_country, billing_country = addresses.normalized_countries()

    shipping_address_id = None
    shipping_address = None
    if is_delivery:
      if addresses.use_saved_address:
        shipping_address_id = addresses.selected_shipping_address_id
      if shipping_address_id is None:
        shipping_address = self._guest_address(
            addresses.shipping, shipping_country
        )

    billing_address_id = None
    billing_address = None
    if addresses.same_as_shipping and is_delivery:
      billing_address_id = shipping_address_id
      billing_address = shipping_address
    else:
      if addresses.use_saved_address:
        billing_address_id = addresses.selected_billing_address_id
      if billing_address_id is None and not addresses.billing.missing_fields():
        billing_address = self._guest_address(
            addresses.billing, billing_country
        )

    return CheckoutRequest(
        user_id=self.user_id,
        guest_id=self.guest_id,
        cart_id=self.cart.cart_id or None,
        shipping_address_id=shipping_address_id,
        billing_address_id=billing_address_id,
        fulfillment_method=method,
        pickup_location_id=(
            None if is_delivery else self._pickup_location_id()
        ),
        shipping_address=shipping_address,
        billing_address=billing_address,
        payment_details=PaymentDetails(
            card_number=step_validation.clean_card_number(payment.card_number),
            expiry_month=expiry.month,
            expiry_year=expiry.year,
            cvv=payment.cvv,
            cardholder_name=payment.name_on_card,
            customer_email=self.wizard.contact.email or None,
            customer_phone=self.wizard.contact.phone or None,
        ),
    )

  async def validate_order(self) -> CheckoutValidationResponse:
    """Asks the backend to check the order without placing it."""
    return await self.client.validate_checkout(self.build_checkout_request())

  async def place_order(self) -> CheckoutResponse:
    """Submits the order.

    Raises:
      InvalidRequestError: The cart is empty, the wizard is not on a fully
        valid Review step, or some store cannot honor the method the order
        would be sent with.
      OrderSubmissionError: The backend could not process the order. The
        message is the generic retryable notice shown to the customer.
    """
    if self.cart.is_empty:
      raise InvalidRequestError(
          "Your cart is empty. Please add items before checkout."
      )
    if not self.wizard.can_place_order:
      raise InvalidRequestError("Checkout is not ready to be placed")
    request = self.build_checkout_request()
    validation = self.fulfillment.validate_fulfillment_method(
        request.fulfillment_method
    )
    if not validation.is_valid:
      raise InvalidRequestError(
          f"Fulfillment method {request.fulfillment_method} is not supported"
          f" by stores {list(validation.invalid_store_ids)}"
      )

    logger.info(
        "Placing %s order for cart %s", request.fulfillment_method,
        request.cart_id,
    )
    try:
      response = await self.client.process_checkout(request)
    except (CheckoutError, ValueError) as e:
      logger.error("Checkout failed for cart %s: %s", request.cart_id, e)
      raise OrderSubmissionError() from e
    logger.info("Order %s placed", response.order_number or response.order_id)
    return response
