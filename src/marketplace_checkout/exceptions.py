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

"""Custom exceptions for the marketplace checkout core."""

ORDER_SUBMISSION_FAILED_MESSAGE = (
    "Unable to process checkout. Please try again."
)


class CheckoutError(Exception):
  """Base class for all checkout exceptions."""

  def __init__(
      self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500
  ):
    self.message = message
    self.code = code
    self.status_code = status_code
    super().__init__(self.message)


class ResourceNotFoundError(CheckoutError):
  """Raised when the backend reports that a resource does not exist."""

  def __init__(self, message: str):
    super().__init__(message, code="RESOURCE_NOT_FOUND", status_code=404)


class InvalidRequestError(CheckoutError):
  """Raised when the request is invalid (e.g. missing fields)."""

  def __init__(self, message: str):
    super().__init__(message, code="INVALID_REQUEST", status_code=400)


class BackendUnavailableError(CheckoutError):
  """Raised when the marketplace backend cannot be reached or fails."""

  def __init__(self, message: str, status_code: int = 502):
    super().__init__(
        message, code="BACKEND_UNAVAILABLE", status_code=status_code
    )


class OrderSubmissionError(CheckoutError):
  """Raised when an order could not be placed.

  The message is always the generic, retryable user-facing text; the
  underlying cause is chained and logged, not shown.
  """

  def __init__(self, message: str = ORDER_SUBMISSION_FAILED_MESSAGE):
    super().__init__(message, code="ORDER_SUBMISSION_FAILED", status_code=502)
