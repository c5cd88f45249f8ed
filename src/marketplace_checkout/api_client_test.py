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

"""Tests for the marketplace backend client."""

import asyncio
from decimal import Decimal
import json

from absl.testing import absltest
from absl.testing import parameterized
import httpx
from marketplace_checkout import exceptions
from marketplace_checkout.api_client import MarketplaceClient
from marketplace_checkout.cache import TtlCache
from marketplace_checkout.models import CheckoutRequest
from marketplace_checkout.testing_utils import FakeBackend


class MarketplaceClientTest(parameterized.TestCase):

  @parameterized.named_parameters(
      ("bare", False),
      ("envelope", True),
  )
  def test_selling_methods_payload_shapes(self, envelope) -> None:
    backend = FakeBackend(envelope=envelope)
    backend.selling_methods[1] = ["pickup", "delivery"]
    client = backend.client()

    methods = asyncio.run(client.get_store_selling_methods(1))

    self.assertEqual(methods, ("pickup", "delivery"))

  def test_selling_methods_are_cached_per_store(self) -> None:
    backend = FakeBackend()
    backend.selling_methods[1] = ["pickup"]
    client = backend.client(TtlCache(300))

    async def run():
      await client.get_store_selling_methods(1)
      await client.get_store_selling_methods(1)

    asyncio.run(run())
    self.assertEqual(backend.calls["/api/stores/1/selling-methods"], 1)

  def test_store_addresses_parse_pascal_case(self) -> None:
    backend = FakeBackend(envelope=True)
    backend.store_addresses[3] = [{
        "AddressId": 11,
        "StoreId": 3,
        "AddressType": "pickup",
        "LocationName": "Barn",
        "StreetAddress": "1 Farm Rd",
        "City": "Salem",
        "State": "OR",
        "ZipCode": "97301",
        "Country": "US",
        "IsPrimary": True,
    }]

    addresses = asyncio.run(backend.client().get_store_addresses(3))

    self.assertLen(addresses, 1)
    self.assertEqual(addresses[0].address_id, 11)
    self.assertEqual(addresses[0].location_name, "Barn")
    self.assertTrue(addresses[0].is_primary)
    self.assertTrue(addresses[0].is_active)

  def test_missing_user_cart_is_empty(self) -> None:
    cart = asyncio.run(FakeBackend().client().get_user_cart(5))

    self.assertTrue(cart.is_empty)
    self.assertEqual(cart.user_id, 5)

  def test_user_cart_items(self) -> None:
    backend = FakeBackend()
    backend.user_carts[5] = {
        "CartId": 90,
        "UserId": 5,
        "CartItems": [
            {"ItemId": 1, "Quantity": 2, "ItemPrice": 4.5, "StoreId": 7}
        ],
    }

    cart = asyncio.run(backend.client().get_user_cart(5))

    self.assertEqual(cart.cart_id, 90)
    self.assertEqual(cart.cart_items[0].item_price, Decimal("4.5"))
    self.assertEqual(cart.cart_items[0].store_id, 7)

  def test_not_found_raises(self) -> None:
    with self.assertRaises(exceptions.ResourceNotFoundError):
      asyncio.run(FakeBackend().client().get_guest_cart(1))

  def test_server_error_raises_backend_unavailable(self) -> None:
    backend = FakeBackend()
    backend.failing_stores.add(2)

    with self.assertRaises(exceptions.BackendUnavailableError) as ctx:
      asyncio.run(backend.client().get_store_selling_methods(2))
    self.assertEqual(ctx.exception.status_code, 502)

  def test_network_error_raises_backend_unavailable(self) -> None:

    def handler(request):
      raise httpx.ConnectError("refused", request=request)

    client = MarketplaceClient(
        httpx.AsyncClient(
            base_url="http://backend.test",
            transport=httpx.MockTransport(handler),
        )
    )

    with self.assertRaises(exceptions.BackendUnavailableError):
      asyncio.run(client.get_user_addresses(1))

  def test_totals_query_drops_unset_params(self) -> None:
    backend = FakeBackend()
    backend.totals = {"Subtotal": 20, "TaxAmount": 1.5, "Total": 21.5}

    totals = asyncio.run(
        backend.client().get_checkout_totals(cart_id=9, customer_id=4)
    )

    self.assertEqual(totals.total, Decimal("21.5"))
    params = dict(backend.requests[-1].url.params)
    self.assertEqual(params, {"cartId": "9", "customerId": "4"})

  def test_process_checkout_sends_pascal_case(self) -> None:
    backend = FakeBackend()
    backend.checkout_response = {
        "OrderId": 1,
        "OrderNumber": "ORD-1",
        "Status": "Pending",
    }
    request = CheckoutRequest(
        user_id=4, cart_id=9, fulfillment_method="pickup",
        pickup_location_id=11,
    )

    response = asyncio.run(backend.client().process_checkout(request))

    self.assertEqual(response.order_number, "ORD-1")
    body = json.loads(backend.requests[-1].content)
    self.assertEqual(body["FulfillmentMethod"], "pickup")
    self.assertEqual(body["PickupLocationId"], 11)
    self.assertEqual(body["PaymentMethod"], "credit_card")
    self.assertNotIn("ShippingAddressId", body)

  def test_set_default_shipping_uses_put(self) -> None:
    backend = FakeBackend()

    asyncio.run(backend.client().set_default_shipping_address(4, 12))

    request = backend.requests[-1]
    self.assertEqual(request.method, "PUT")
    self.assertEqual(
        request.url.path, "/api/users/4/addresses/12/set-default-shipping"
    )


if __name__ == "__main__":
  absltest.main()
