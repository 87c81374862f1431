"""Delivery address step of the checkout workflow."""

from flowershop.core.logging import get_logger
from flowershop.services.checkout.commands import AddressInput
from flowershop.services.checkout.errors import CheckoutValidationError, FieldError
from flowershop.services.checkout.results import StepResult, capture
from flowershop.services.checkout.store import CheckoutStore

logger = get_logger(__name__)


class AddressResolver:
    """
    Turns address input into an address id.

    A new address always creates a new row, even when an identical one
    exists. An existing id is used as given.
    """

    def __init__(self, store: CheckoutStore):
        self.store = store

    async def resolve(self, address: AddressInput) -> StepResult[int]:
        if address.new_address is not None:
            new = address.new_address
            result = await capture(
                "create_address",
                self.store.create_address(
                    new.postal_code.strip(),
                    new.street.strip(),
                    new.house_number,
                ),
            )
            if result.ok:
                logger.info("Delivery address created", address_id=result.value)
            return result

        if address.address_id is None or address.address_id <= 0:
            return StepResult.failure(
                CheckoutValidationError(
                    [FieldError("address_id", "Please select an existing address.")]
                )
            )
        return StepResult.success(address.address_id)
