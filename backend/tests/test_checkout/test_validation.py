"""Tests for checkout input validation."""

from decimal import Decimal

import pytest

from flowershop.services.cart.store import CartLine
from flowershop.services.checkout.commands import AddressInput, NewAddress, PaymentInput, PlaceOrderCommand
from flowershop.services.checkout.validation import MAX_AMOUNT, MAX_INTEGER, card_digits, validate_place_order

LINES = [CartLine(product_id=7, quantity=2)]


def command(payment: PaymentInput, address: AddressInput = AddressInput(address_id=1), **overrides) -> PlaceOrderCommand:
    values = {"user_id": 42, "delivery_method_id": 1, "shop_id": 1}
    values.update(overrides)
    return PlaceOrderCommand(address=address, payment=payment, **values)


def fields(errors) -> list[str]:
    return [error.field for error in errors]


CASH = PaymentInput(method="cash", cash_accepted=Decimal("400"))


class TestValidatePlaceOrder:
    """Test validation of complete checkout requests."""

    def test_valid_cash_order(self):
        assert validate_place_order(command(CASH), LINES) == []

    def test_payment_method_is_case_insensitive(self):
        payment = PaymentInput(method=" Card ", card_number="4111111111111111")

        assert validate_place_order(command(payment), LINES) == []

    def test_unknown_payment_method(self):
        errors = validate_place_order(command(PaymentInput(method="cheque")), LINES)

        assert fields(errors) == ["payment.method"]

    @pytest.mark.parametrize("number", [None, "", "4111 1111 111", "abcd-efgh-ijkl-mnop"])
    def test_card_number_needs_twelve_digits(self, number):
        errors = validate_place_order(command(PaymentInput(method="card", card_number=number)), LINES)

        assert fields(errors) == ["payment.card_number"]

    @pytest.mark.parametrize("accepted", [None, Decimal("0"), Decimal("-5")])
    def test_cash_must_be_positive(self, accepted):
        errors = validate_place_order(command(PaymentInput(method="cash", cash_accepted=accepted)), LINES)

        assert fields(errors) == ["payment.cash_accepted"]

    @pytest.mark.parametrize("code", [None, "", "   "])
    def test_coupon_code_required(self, code):
        errors = validate_place_order(command(PaymentInput(method="coupon", coupon_code=code)), LINES)

        assert fields(errors) == ["payment.coupon_code"]

    @pytest.mark.parametrize(
        "lines",
        [
            None,
            [],
            [CartLine(product_id=7, quantity=0)],
            [CartLine(product_id=0, quantity=1)],
        ],
    )
    def test_items_required(self, lines):
        errors = validate_place_order(command(CASH), lines)

        assert fields(errors) == ["items"]
        assert errors[0].message == "Add at least one valid item to the order."

    def test_existing_address_required(self):
        errors = validate_place_order(command(CASH, address=AddressInput()), LINES)

        assert fields(errors) == ["address_id"]
        assert errors[0].message == "Please select an existing address."

    def test_incomplete_new_address_reports_every_field(self):
        address = AddressInput(new_address=NewAddress(street=" ", house_number=0, postal_code=""))

        errors = validate_place_order(command(CASH, address=address), LINES)

        assert fields(errors) == [
            "new_address.street",
            "new_address.house_number",
            "new_address.postal_code",
        ]

    def test_long_postal_code(self):
        address = AddressInput(new_address=NewAddress(street="Karlova", house_number=1, postal_code="12345678901"))

        errors = validate_place_order(command(CASH, address=address), LINES)

        assert fields(errors) == ["new_address.postal_code"]

    def test_new_address_wins_over_address_id(self):
        address = AddressInput(
            address_id=0,
            new_address=NewAddress(street="Karlova", house_number=1, postal_code="11000"),
        )

        assert validate_place_order(command(CASH, address=address), LINES) == []

    def test_reference_ids_must_be_positive(self):
        errors = validate_place_order(command(CASH, delivery_method_id=0, shop_id=-1), LINES)

        assert fields(errors) == ["delivery_method_id", "shop_id"]

    def test_cash_above_column_limit(self):
        payment = PaymentInput(method="cash", cash_accepted=Decimal("1000000000000.00"))

        errors = validate_place_order(command(payment), LINES)

        assert fields(errors) == ["payment.cash_accepted"]
        assert errors[0].message == "The cash amount is too large."

    def test_cash_at_column_limit(self):
        payment = PaymentInput(method="cash", cash_accepted=MAX_AMOUNT)

        assert validate_place_order(command(payment), LINES) == []

    @pytest.mark.parametrize(
        "line",
        [
            CartLine(product_id=7, quantity=3_000_000_000),
            CartLine(product_id=MAX_INTEGER + 1, quantity=1),
        ],
    )
    def test_line_values_above_integer_range(self, line):
        errors = validate_place_order(command(CASH), [line])

        assert fields(errors) == ["items"]

    def test_ids_above_integer_range(self):
        too_big = MAX_INTEGER + 1
        address = AddressInput(
            new_address=NewAddress(street="Karlova", house_number=too_big, postal_code="11000"),
        )

        errors = validate_place_order(
            command(CASH, address=address, delivery_method_id=too_big, shop_id=too_big),
            LINES,
        )

        assert fields(errors) == ["delivery_method_id", "shop_id", "new_address.house_number"]

    def test_address_id_above_integer_range(self):
        errors = validate_place_order(command(CASH, address=AddressInput(address_id=MAX_INTEGER + 1)), LINES)

        assert fields(errors) == ["address_id"]


def test_card_digits_strips_separators():
    assert card_digits("4111-1111 1111.1111") == "4111111111111111"
