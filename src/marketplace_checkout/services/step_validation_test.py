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

"""Tests for checkout step validation."""

from absl.testing import absltest
from absl.testing import parameterized
from marketplace_checkout.models import ContactInfo
from marketplace_checkout.models import PaymentInfo
from marketplace_checkout.models import ShippingInfo
from marketplace_checkout.services import step_validation
from marketplace_checkout.services.step_validation import CardExpiry


def _payment(**kwargs):
  fields = {
      "card_number": "4111 1111 1111 1111",
      "expiry_date": "12/2027",
      "cvv": "123",
      "name_on_card": "Ada Lovelace",
  }
  fields.update(kwargs)
  return PaymentInfo(**fields)


def _shipping(**kwargs):
  fields = {
      "first_name": "Ada",
      "last_name": "Lovelace",
      "address": "1 Elm St",
      "city": "Portland",
      "state": "OR",
      "zip_code": "97201",
  }
  fields.update(kwargs)
  return ShippingInfo(**fields)


class CardTest(parameterized.TestCase):

  @parameterized.parameters(
      ("4111 1111 1111 1111", True),
      ("4111111111111", True),
      ("4111111111111111111", True),
      ("123", False),
      ("41111111111111111111", False),
      ("4111-1111-1111-1111", False),
      ("", False),
  )
  def test_card_number(self, number, valid) -> None:
    self.assertEqual(step_validation.is_valid_card_number(number), valid)

  @parameterized.parameters(
      ("12/2027", CardExpiry(month=12, year=2027)),
      ("01/26", CardExpiry(month=1, year=2026)),
      (" 3 / 2030 ", CardExpiry(month=3, year=2030)),
      ("13/2025", None),
      ("00/2025", None),
      ("01/2023", None),
      ("2025", None),
      ("ab/cd", None),
  )
  def test_parse_expiry(self, text, expected) -> None:
    self.assertEqual(
        step_validation.parse_expiry(text, min_year=2024), expected
    )

  def test_parse_expiry_uses_configured_year(self) -> None:
    self.assertIsNone(step_validation.parse_expiry("01/2023"))
    self.assertIsNotNone(step_validation.parse_expiry("01/2024"))


class StepValidationTest(absltest.TestCase):

  def test_contact_missing_fields(self) -> None:
    result = step_validation.validate_contact(ContactInfo(email="a@b.c"))

    self.assertFalse(result.is_valid)
    self.assertEqual(result.message, "Missing: Phone Number")

  def test_contact_blank_is_missing(self) -> None:
    result = step_validation.validate_contact(
        ContactInfo(email="  ", phone="555")
    )

    self.assertEqual(result.message, "Missing: Email")

  def test_shipping_not_needed_for_pickup(self) -> None:
    self.assertTrue(
        step_validation.validate_shipping(ShippingInfo(), "pickup").is_valid
    )

  def test_shipping_form_missing_fields(self) -> None:
    result = step_validation.validate_shipping(
        _shipping(city="", zip_code=""), "delivery"
    )

    self.assertEqual(result.message, "Missing: City, ZIP Code")

  def test_shipping_saved_address_must_be_selected(self) -> None:
    result = step_validation.validate_shipping(
        ShippingInfo(),
        "delivery",
        use_saved_address=True,
        has_saved_addresses=True,
    )

    self.assertEqual(result.message, "Please select a shipping address")
    self.assertTrue(
        step_validation.validate_shipping(
            ShippingInfo(),
            "delivery",
            use_saved_address=True,
            has_saved_addresses=True,
            selected_shipping_address_id=3,
        ).is_valid
    )

  def test_shipping_complete_form(self) -> None:
    self.assertTrue(
        step_validation.validate_shipping(_shipping(), "delivery").is_valid
    )

  def test_payment_valid(self) -> None:
    self.assertTrue(step_validation.validate_payment(_payment()).is_valid)

  def test_payment_missing_fields(self) -> None:
    result = step_validation.validate_payment(_payment(cvv="", name_on_card=""))

    self.assertEqual(result.message, "Missing: CVV, Name on Card")

  def test_payment_bad_card(self) -> None:
    result = step_validation.validate_payment(_payment(card_number="123"))

    self.assertEqual(
        result.message, "Please enter a valid card number (13-19 digits)"
    )

  def test_payment_bad_expiry(self) -> None:
    result = step_validation.validate_payment(
        _payment(expiry_date="13/2025"), min_year=2024
    )

    self.assertEqual(
        result.message,
        "Please enter a valid expiry date (MM/YYYY, 2024 or later)",
    )


if __name__ == "__main__":
  absltest.main()
