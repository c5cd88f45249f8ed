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

"""Per-step validity gates for the checkout wizard.

Validation failures are reported as values (`StepValidation`), never raised:
the caller disables its "Next"/"Place Order" action and shows the message.
"""

import dataclasses
import re
from typing import Optional

from .. import config
from ..enums import FulfillmentMethod
from ..models import ContactInfo
from ..models import PaymentInfo
from ..models import ShippingInfo

MIN_CARD_DIGITS = 13
MAX_CARD_DIGITS = 19

_WHITESPACE = re.compile(r"\s")


@dataclasses.dataclass(frozen=True)
class StepValidation:
  is_valid: bool
  message: str = ""

  @classmethod
  def ok(cls) -> "StepValidation":
    return cls(is_valid=True)

  @classmethod
  def missing(cls, labels: list[str]) -> "StepValidation":
    return cls(is_valid=False, message=f"Missing: {', '.join(labels)}")


@dataclasses.dataclass(frozen=True)
class CardExpiry:
  month: int
  year: int


def clean_card_number(card_number: str) -> str:
  return _WHITESPACE.sub("", card_number or "")


def is_valid_card_number(card_number: str) -> bool:
  """13 to 19 digits once spaces are removed."""
  cleaned = clean_card_number(card_number)
  return (
      cleaned.isdigit()
      and MIN_CARD_DIGITS <= len(cleaned) <= MAX_CARD_DIGITS
  )


def parse_expiry(
    expiry_date: str, min_year: Optional[int] = None
) -> Optional[CardExpiry]:
  """Parses MM/YYYY or MM/YY.

  Args:
    expiry_date: The text typed by the customer.
    min_year: Earliest accepted four-digit year; defaults to the configured
      `min_card_expiry_year`.

  Returns:
    The expiry with a four-digit year, or None when the format, month or
    year is invalid.
  """
  if min_year is None:
    min_year = config.get_settings().min_card_expiry_year
  parts = (expiry_date or "").split("/")
  if len(parts) != 2:
    return None
  month_text, year_text = (p.strip() for p in parts)
  if not (month_text.isdigit() and year_text.isdigit()):
    return None
  month, year = int(month_text), int(year_text)
  if not 1 <= month <= 12:
    return None
  if year < 100:
    year += 2000
  if year < min_year:
    return None
  return CardExpiry(month=month, year=year)


def validate_contact(contact: ContactInfo) -> StepValidation:
  missing = contact.missing_fields()
  return StepValidation.missing(missing) if missing else StepValidation.ok()


def validate_shipping(
    shipping: ShippingInfo,
    fulfillment_method: Optional[str],
    use_saved_address: bool = False,
    has_saved_addresses: bool = False,
    selected_shipping_address_id: Optional[int] = None,
) -> StepValidation:
  """Shipping step gate.

  Pickup orders need no address. Delivery orders need either a selected
  saved address (when saved addresses are in use) or a complete form.
  """
  if fulfillment_method == FulfillmentMethod.PICKUP.value:
    return StepValidation.ok()
  if use_saved_address and has_saved_addresses:
    if selected_shipping_address_id is None:
      return StepValidation(
          is_valid=False, message="Please select a shipping address"
      )
    return StepValidation.ok()
  missing = shipping.missing_fields()
  return StepValidation.missing(missing) if missing else StepValidation.ok()


def validate_payment(
    payment: PaymentInfo, min_year: Optional[int] = None
) -> StepValidation:
  if min_year is None:
    min_year = config.get_settings().min_card_expiry_year
  missing = payment.missing_fields()
  if missing:
    return StepValidation.missing(missing)
  if not is_valid_card_number(payment.card_number):
    return StepValidation(
        is_valid=False,
        message="Please enter a valid card number (13-19 digits)",
    )
  if parse_expiry(payment.expiry_date, min_year) is None:
    return StepValidation(
        is_valid=False,
        message=(
            f"Please enter a valid expiry date (MM/YYYY, {min_year} or later)"
        ),
    )
  return StepValidation.ok()
