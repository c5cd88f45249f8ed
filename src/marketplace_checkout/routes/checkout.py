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

"""Checkout routes exposing fulfillment, pickup and totals to the front end."""

from typing import Any, Optional

from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends
from fastapi import Query
from pydantic import BaseModel
from pydantic import Field

from .. import dependencies
from ..exceptions import InvalidRequestError
from ..models import Cart
from ..models import CartLineItem
from ..services.address_service import normalize_country
from ..services.cart_fulfillment import CartFulfillmentController
from ..services.checkout_service import CheckoutTotalsCalculator
from ..services.pickup_service import StorePickupResolver
from ..services.pickup_service import format_store_address_one_line
from ..services.pickup_service import get_pickup_instructions

router = APIRouter()


class CartItemsRequest(BaseModel):
  """Line items of the cart being checked out."""

  items: list[CartLineItem] = Field(default_factory=list)


class FulfillmentValidationRequest(CartItemsRequest):
  fulfillment_method: str


@router.post(
    "/checkout/fulfillment",
    response_model=dict[str, Any],
    operation_id="analyze_cart_fulfillment",
)
async def analyze_cart_fulfillment(
    body: CartItemsRequest = Body(...),
    controller: CartFulfillmentController = Depends(
        dependencies.get_fulfillment_controller
    ),
) -> dict[str, Any]:
  """Analyze which fulfillment methods every store in a cart supports."""
  analysis = await controller.update_cart(Cart(cart_items=body.items))
  return {
      "analysis": analysis.model_dump(mode="json"),
      "available_fulfillment_methods": list(
          controller.available_fulfillment_methods
      ),
      "recommended_fulfillment_method": (
          controller.recommended_fulfillment_method
      ),
      "can_choose_fulfillment": controller.can_choose_fulfillment,
      "show_delivery_address": controller.show_delivery_address(),
      "show_pickup_options": controller.show_pickup_options(),
      "warning": controller.fulfillment_warning,
      "error": controller.error,
  }


@router.post(
    "/checkout/fulfillment/validate",
    response_model=dict[str, Any],
    operation_id="validate_fulfillment_method",
)
async def validate_fulfillment_method(
    body: FulfillmentValidationRequest = Body(...),
    controller: CartFulfillmentController = Depends(
        dependencies.get_fulfillment_controller
    ),
) -> dict[str, Any]:
  """Check a fulfillment method against every store in a cart."""
  await controller.update_cart(Cart(cart_items=body.items))
  validation = controller.validate_fulfillment_method(body.fulfillment_method)
  return validation.model_dump(mode="json")


@router.post(
    "/checkout/pickup-locations",
    response_model=dict[str, Any],
    operation_id="get_pickup_locations",
)
async def get_pickup_locations(
    body: CartItemsRequest = Body(...),
    resolver: StorePickupResolver = Depends(dependencies.get_pickup_resolver),
) -> dict[str, Any]:
  """Resolve where each store in a cart can be picked up from."""
  result = await resolver.resolve(body.items)
  stores = []
  for info in result.store_pickup_info.values():
    primary = info.primary_pickup_address
    stores.append({
        **info.model_dump(mode="json"),
        "primary_address_line": (
            format_store_address_one_line(primary) if primary else None
        ),
        "pickup_instructions": (
            get_pickup_instructions(primary) if primary else None
        ),
    })
  return {
      "stores": stores,
      "has_pickup_addresses": result.has_pickup_addresses,
      "total_stores": result.total_stores,
  }


@router.get(
    "/checkout/totals",
    response_model=dict[str, Any],
    operation_id="get_checkout_totals",
)
async def get_checkout_totals(
    fulfillment_method: Optional[str] = Query(None, alias="fulfillmentMethod"),
    zip_code: Optional[str] = Query(None, alias="zipCode"),
    shipping_address_id: Optional[int] = Query(None, alias="shippingAddressId"),
    billing_address_id: Optional[int] = Query(None, alias="billingAddressId"),
    customer_id: Optional[int] = Query(None, alias="customerId"),
    guest_id: Optional[int] = Query(None, alias="guestId"),
    calculator: CheckoutTotalsCalculator = Depends(
        dependencies.get_totals_calculator
    ),
) -> dict[str, Any]:
  """Price the customer's or guest's cart.

  Totals come from the backend once a ZIP code is known, and are estimated
  locally otherwise.
  """
  if customer_id is not None:
    cart = await calculator.client.get_user_cart(customer_id)
  elif guest_id is not None:
    cart = await calculator.client.get_guest_cart(guest_id)
  else:
    raise InvalidRequestError("Either customerId or guestId is required")

  totals = await calculator.calculate(
      cart,
      fulfillment_method,
      zip_code=zip_code,
      shipping_address_id=shipping_address_id,
      billing_address_id=billing_address_id,
      user_id=customer_id,
      guest_id=guest_id,
  )
  return totals.model_dump(mode="json")


@router.get(
    "/countries/normalize",
    response_model=dict[str, str],
    operation_id="normalize_country",
)
async def normalize_country_name(
    country: str = Query(...),
) -> dict[str, str]:
  """Map a free-text country to its ISO-2 code."""
  return {"country": country, "code": normalize_country(country)}
