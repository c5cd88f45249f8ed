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

"""Tests for shipping and billing address selection."""

import asyncio

from absl.testing import absltest
from absl.testing import parameterized
from marketplace_checkout.enums import AddressKind
from marketplace_checkout.models import UserAddress
from marketplace_checkout.services.address_service import AddressResolver
from marketplace_checkout.services.address_service import normalize_country
from marketplace_checkout.testing_utils import FakeBackend


def _user_address(address_id, address_type="shipping", **kwargs):
  fields = {
      "AddressId": address_id,
      "UserId": 4,
      "AddressType": address_type,
      "FirstName": "Ada",
      "LastName": "Lovelace",
      "StreetAddress": f"{address_id} Elm St",
      "City": "Portland",
      "State": "OR",
      "ZipCode": "97201",
      "Country": "United States",
  }
  fields.update(kwargs)
  return fields


class NormalizeCountryTest(parameterized.TestCase):

  @parameterized.parameters(
      ("United States", "US"),
      ("usa", "US"),
      ("U.S.", "US"),
      ("  Canada ", "CA"),
      ("United Kingdom", "GB"),
      ("Narnia", "NARNIA"),
      ("de", "DE"),
  )
  def test_normalize(self, country, expected) -> None:
    self.assertEqual(normalize_country(country), expected)


class AddressResolverTest(absltest.TestCase):

  def setUp(self) -> None:
    super().setUp()
    self.backend = FakeBackend()
    self.resolver = AddressResolver(self.backend.client())

  def test_no_saved_addresses(self) -> None:
    addresses = asyncio.run(self.resolver.load_addresses(4))

    self.assertEqual(addresses, [])
    self.assertFalse(self.resolver.has_saved_addresses)
    self.assertFalse(self.resolver.use_saved_address)
    self.assertIsNone(self.resolver.selected_shipping_address_id)

  def test_defaults_to_first_shipping_capable_address(self) -> None:
    self.backend.user_addresses[4] = [
        _user_address(1, "billing"),
        _user_address(2, "both", City="Eugene"),
        _user_address(3, "shipping"),
    ]

    asyncio.run(self.resolver.load_addresses(4))

    self.assertTrue(self.resolver.use_saved_address)
    self.assertEqual(self.resolver.selected_shipping_address_id, 2)
    self.assertEqual(self.resolver.selected_billing_address_id, 2)
    self.assertEqual(self.resolver.shipping.city, "Eugene")
    self.assertEqual(self.resolver.shipping.address, "2 Elm St")

  def test_falls_back_to_first_address(self) -> None:
    self.backend.user_addresses[4] = [
        _user_address(7, "billing"),
        _user_address(8, "billing"),
    ]

    asyncio.run(self.resolver.load_addresses(4))

    self.assertEqual(self.resolver.selected_shipping_address_id, 7)
    self.assertEqual(self.resolver.shipping.first_name, "Ada")

  def test_failed_load_leaves_manual_entry(self) -> None:
    self.backend.fail_all = True

    with self.assertLogs(level="ERROR"):
      addresses = asyncio.run(self.resolver.load_addresses(4))

    self.assertEqual(addresses, [])
    self.assertFalse(self.resolver.use_saved_address)

  def test_select_address_fills_billing_form(self) -> None:
    self.resolver.set_addresses([
        UserAddress.model_validate(_user_address(1)),
        UserAddress.model_validate(_user_address(2, City="Bend")),
    ])

    self.assertTrue(self.resolver.select_address(2, AddressKind.BILLING))
    self.assertEqual(self.resolver.selected_billing_address_id, 2)
    self.assertEqual(self.resolver.billing.city, "Bend")
    self.assertEqual(self.resolver.selected_shipping_address_id, 1)

  def test_select_unknown_address(self) -> None:
    self.resolver.set_addresses([UserAddress.model_validate(_user_address(1))])

    with self.assertLogs(level="WARNING"):
      self.assertFalse(self.resolver.select_address(99, AddressKind.SHIPPING))
    self.assertEqual(self.resolver.selected_shipping_address_id, 1)

  def test_same_as_shipping_copies_once(self) -> None:
    self.resolver.shipping.city = "Salem"
    self.resolver.set_same_as_shipping(True)
    self.resolver.shipping.city = "Bend"

    self.assertEqual(self.resolver.billing.city, "Salem")

  def test_normalized_countries(self) -> None:
    self.resolver.shipping.country = "usa"
    self.resolver.billing.country = "Canada"

    self.assertEqual(self.resolver.normalized_countries(), ("US", "US"))
    self.resolver.set_same_as_shipping(False)
    self.assertEqual(self.resolver.normalized_countries(), ("US", "CA"))

  def test_set_default_shipping_address(self) -> None:
    self.backend.user_addresses[4] = [
        _user_address(1, IsPrimary=True),
        _user_address(2),
    ]

    async def run():
      await self.resolver.load_addresses(4)
      return await self.resolver.set_default_shipping_address(2)

    self.assertTrue(asyncio.run(run()))
    self.assertEqual(
        [a.is_primary for a in self.resolver.addresses], [False, True]
    )
    self.assertEqual(
        self.backend.calls["/api/users/4/addresses/2/set-default-shipping"], 1
    )

  def test_set_default_without_user(self) -> None:
    self.assertFalse(
        asyncio.run(self.resolver.set_default_billing_address(2))
    )

  def test_set_default_failure(self) -> None:
    async def run():
      await self.resolver.load_addresses(4)
      self.backend.fail_all = True
      return await self.resolver.set_default_billing_address(1)

    with self.assertLogs(level="ERROR"):
      self.assertFalse(asyncio.run(run()))


if __name__ == "__main__":
  absltest.main()
