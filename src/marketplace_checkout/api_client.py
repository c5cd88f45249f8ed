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

"""HTTP client for the marketplace REST backend.

The backend answers either with a bare JSON payload or with a
`{"Data": ..., "Success": ...}` envelope; `_request` unwraps both. Transport
failures become `BackendUnavailableError` and 404s `ResourceNotFoundError`
so callers only deal with the checkout exception hierarchy.
"""

import logging
from typing import Any, Optional

import httpx

from . import config
from .cache import TtlCache
from .exceptions import BackendUnavailableError
from .exceptions import ResourceNotFoundError
from .models import Cart
from .models import CheckoutRequest
from .models import CheckoutResponse
from .models import CheckoutTotals
from .models import CheckoutValidationResponse
from .models import StoreAddress
from .models import UserAddress

logger = logging.getLogger(__name__)

_ENVELOPE_KEYS = ("Data", "data")


def _unwrap(payload: Any) -> Any:
  if isinstance(payload, dict):
    for key in _ENVELOPE_KEYS:
      if key in payload:
        return payload[key]
  return payload


def _as_list(payload: Any) -> list:
  payload = _unwrap(payload)
  return payload if isinstance(payload, list) else []


class MarketplaceClient:
  """Async client for the store, cart, address and checkout endpoints."""

  def __init__(
      self,
      http_client: httpx.AsyncClient,
      capability_cache: Optional[TtlCache[int, tuple[str, ...]]] = None,
  ):
    self.http_client = http_client
    self.capability_cache = capability_cache

  @classmethod
  def from_settings(
      cls,
      settings: config.Settings,
      capability_cache: Optional[TtlCache[int, tuple[str, ...]]] = None,
      transport: Optional[httpx.AsyncBaseTransport] = None,
  ) -> "MarketplaceClient":
    """Builds a client whose base URL and timeout come from settings."""
    http_client = httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=settings.api_timeout_seconds,
        headers={"Content-Type": "application/json"},
        transport=transport,
    )
    return cls(http_client, capability_cache)

  async def aclose(self) -> None:
    await self.http_client.aclose()

  async def _request(
      self,
      method: str,
      url: str,
      params: Optional[dict[str, Any]] = None,
      json_body: Optional[dict[str, Any]] = None,
  ) -> Any:
    try:
      response = await self.http_client.request(
          method, url, params=params, json=json_body
      )
    except httpx.RequestError as e:
      logger.error("Network error calling %s %s: %s", method, url, e)
      raise BackendUnavailableError(
          f"Could not reach marketplace backend for {url}"
      ) from e

    if response.status_code == 404:
      raise ResourceNotFoundError(f"{url} not found")
    try:
      response.raise_for_status()
    except httpx.HTTPStatusError as e:
      logger.error(
          "Backend returned %s for %s %s", response.status_code, method, url
      )
      raise BackendUnavailableError(
          f"Marketplace backend returned {response.status_code} for {url}"
      ) from e

    if not response.content:
      return None
    try:
      return _unwrap(response.json())
    except ValueError as e:
      raise BackendUnavailableError(
          f"Marketplace backend returned invalid JSON for {url}"
      ) from e

  # --- Stores ---

  async def get_store_selling_methods(self, store_id: int) -> tuple[str, ...]:
    """Returns the capability tags a store declares, e.g. ("pickup",)."""

    async def load() -> tuple[str, ...]:
      payload = await self._request(
          "GET", f"/api/stores/{store_id}/selling-methods"
      )
      return tuple(str(tag) for tag in _as_list(payload))

    if self.capability_cache is None:
      return await load()
    return await self.capability_cache.get_or_load(store_id, load)

  async def get_store_addresses(self, store_id: int) -> list[StoreAddress]:
    payload = await self._request("GET", f"/api/stores/{store_id}/addresses")
    return [StoreAddress.model_validate(a) for a in _as_list(payload)]

  # --- Carts ---

  async def get_user_cart(self, user_id: int) -> Cart:
    """Fetches a user's cart; a user without a cart gets an empty one."""
    try:
      payload = await self._request("GET", f"/api/carts/{user_id}")
    except ResourceNotFoundError:
      return Cart(user_id=user_id)
    if not payload:
      return Cart(user_id=user_id)
    return Cart.model_validate(payload)

  async def get_guest_cart(self, guest_id: int) -> Cart:
    payload = await self._request("GET", f"/api/carts/guest/{guest_id}")
    return Cart.model_validate(payload or {})

  # --- User address book ---

  async def get_user_addresses(self, user_id: int) -> list[UserAddress]:
    payload = await self._request("GET", f"/api/users/{user_id}/addresses")
    return [UserAddress.model_validate(a) for a in _as_list(payload)]

  async def set_default_shipping_address(
      self, user_id: int, address_id: int
  ) -> None:
    await self._request(
        "PUT",
        f"/api/users/{user_id}/addresses/{address_id}/set-default-shipping",
    )

  async def set_default_billing_address(
      self, user_id: int, address_id: int
  ) -> None:
    await self._request(
        "PUT",
        f"/api/users/{user_id}/addresses/{address_id}/set-default-billing",
    )

  # --- Checkout ---

  async def get_checkout_totals(
      self,
      cart_id: Optional[int] = None,
      shipping_address_id: Optional[int] = None,
      billing_address_id: Optional[int] = None,
      customer_id: Optional[int] = None,
      guest_id: Optional[int] = None,
  ) -> CheckoutTotals:
    """Asks the backend to price a cart for the given addresses."""
    params = {
        "cartId": cart_id,
        "shippingAddressId": shipping_address_id,
        "billingAddressId": billing_address_id,
        "customerId": customer_id,
        "guestId": guest_id,
    }
    payload = await self._request(
        "GET",
        "/api/checkout/totals",
        params={k: v for k, v in params.items() if v},
    )
    return CheckoutTotals.model_validate(payload or {})

  async def validate_checkout(
      self, request: CheckoutRequest
  ) -> CheckoutValidationResponse:
    payload = await self._request(
        "POST", "/api/checkout/validate", json_body=request.to_backend()
    )
    return CheckoutValidationResponse.model_validate(payload)

  async def process_checkout(
      self, request: CheckoutRequest
  ) -> CheckoutResponse:
    payload = await self._request(
        "POST", "/api/checkout", json_body=request.to_backend()
    )
    return CheckoutResponse.model_validate(payload)
