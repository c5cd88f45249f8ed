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

"""In-memory marketplace backend served through httpx.MockTransport.

Shared by the *_test.py modules. Excluded from the wheel with them.
"""

import collections
import re
from typing import Any, Optional

import httpx

from . import config
from .api_client import MarketplaceClient
from .cache import TtlCache
from .models import CartLineItem

BASE_URL = "http://backend.test"

_SELLING_METHODS = re.compile(r"^/api/stores/(\d+)/selling-methods$")
_STORE_ADDRESSES = re.compile(r"^/api/stores/(\d+)/addresses$")
_GUEST_CART = re.compile(r"^/api/carts/guest/(\d+)$")
_USER_CART = re.compile(r"^/api/carts/(\d+)$")
_USER_ADDRESSES = re.compile(r"^/api/users/(\d+)/addresses$")
_SET_DEFAULT = re.compile(
    r"^/api/users/(\d+)/addresses/(\d+)/set-default-(shipping|billing)$"
)


def line_item(
    item_id: int,
    store_id: Optional[int],
    store_name: Optional[str] = None,
    price: str = "10.00",
    quantity: int = 1,
) -> CartLineItem:
  return CartLineItem(
      item_id=item_id,
      store_id=store_id,
      store_name=store_name,
      item_price=price,
      quantity=quantity,
  )


class FakeBackend:
  """Canned responses for the backend endpoints the checkout core calls.

  Payloads are stored in backend (PascalCase) form. Store ids listed in
  `failing_stores` answer with a 500. Every request is counted by path.
  """

  def __init__(self, envelope: bool = False):
    self.envelope = envelope
    self.selling_methods: dict[int, list[str]] = {}
    self.store_addresses: dict[int, list[dict[str, Any]]] = {}
    self.user_carts: dict[int, dict[str, Any]] = {}
    self.guest_carts: dict[int, dict[str, Any]] = {}
    self.user_addresses: dict[int, list[dict[str, Any]]] = {}
    self.totals: Optional[dict[str, Any]] = None
    self.validation: dict[str, Any] = {"IsValid": True, "Errors": []}
    self.checkout_response: Optional[dict[str, Any]] = None
    self.checkout_failure_status = 500
    self.failing_stores: set[int] = set()
    self.fail_all = False
    self.calls: collections.Counter = collections.Counter()
    self.requests: list[httpx.Request] = []

  def _json(self, payload: Any, status_code: int = 200) -> httpx.Response:
    if self.envelope:
      payload = {"Success": True, "Data": payload}
    return httpx.Response(status_code, json=payload)

  def handler(self, request: httpx.Request) -> httpx.Response:
    path = request.url.path
    self.calls[path] += 1
    self.requests.append(request)
    if self.fail_all:
      return httpx.Response(500, json={"Message": "boom"})

    match = _SELLING_METHODS.match(path)
    if match:
      store_id = int(match.group(1))
      if store_id in self.failing_stores:
        return httpx.Response(500, json={"Message": "boom"})
      if store_id not in self.selling_methods:
        return httpx.Response(404)
      return self._json(self.selling_methods[store_id])

    match = _STORE_ADDRESSES.match(path)
    if match:
      store_id = int(match.group(1))
      if store_id in self.failing_stores:
        return httpx.Response(500, json={"Message": "boom"})
      return self._json(self.store_addresses.get(store_id, []))

    match = _GUEST_CART.match(path)
    if match:
      cart = self.guest_carts.get(int(match.group(1)))
      return self._json(cart) if cart else httpx.Response(404)

    match = _USER_CART.match(path)
    if match:
      cart = self.user_carts.get(int(match.group(1)))
      return self._json(cart) if cart else httpx.Response(404)

    match = _USER_ADDRESSES.match(path)
    if match:
      return self._json(self.user_addresses.get(int(match.group(1)), []))

    if _SET_DEFAULT.match(path):
      return httpx.Response(204)

    if path == "/api/checkout/totals":
      if self.totals is None:
        return httpx.Response(500, json={"Message": "no totals"})
      return self._json(self.totals)

    if path == "/api/checkout/validate":
      return self._json(self.validation)

    if path == "/api/checkout":
      if self.checkout_response is None:
        return httpx.Response(
            self.checkout_failure_status, json={"Message": "payment declined"}
        )
      return self._json(self.checkout_response)

    return httpx.Response(404)

  def client(
      self, capability_cache: Optional[TtlCache] = None
  ) -> MarketplaceClient:
    """A MarketplaceClient whose requests are answered by this backend."""
    settings = config.Settings(api_base_url=BASE_URL)
    return MarketplaceClient.from_settings(
        settings,
        capability_cache,
        transport=httpx.MockTransport(self.handler),
    )
