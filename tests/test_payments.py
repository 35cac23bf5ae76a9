"""Tests for card helpers and the simulated payment gateway"""

import asyncio
import re
import time

import pytest

from storefront.errors import CardValidationError, PaymentDeclinedError
from storefront.models import CardBrand, DeclineReason, PaymentInput
from storefront.services.payments import (
    SimulatedPaymentGateway,
    detect_card_brand,
    format_card_number,
    format_cvv,
    format_expiry_date,
    validate_card,
)


def _card(number: str) -> PaymentInput:
    return PaymentInput(
        card_number=format_card_number(number),
        expiry_date="12/28",
        cvv="123",
        card_holder_name="Ana Mora",
    )


@pytest.mark.parametrize("raw,expected", [
    ("4242424242424242", "4242 4242 4242 4242"),
    ("4242-4242 4242abc4242", "4242 4242 4242 4242"),
    ("42424242424242421234", "4242 4242 4242 4242"),
    ("42424", "4242 4"),
    ("", ""),
])
def test_format_card_number(raw, expected):
    assert format_card_number(raw) == expected


@pytest.mark.parametrize("raw,expected", [
    ("1", "1"),
    ("12", "12/"),
    ("1228", "12/28"),
    ("12/2", "12/2"),
    ("122899", "12/28"),
])
def test_format_expiry_date(raw, expected):
    assert format_expiry_date(raw) == expected


def test_format_cvv_strips_non_digits():
    assert format_cvv("1a2b3c4d5") == "1234"


@pytest.mark.parametrize("number,brand", [
    ("4242424242424242", CardBrand.VISA),
    ("5500000000000004", CardBrand.MASTERCARD),
    ("340000000000009", CardBrand.AMERICAN_EXPRESS),
    ("3700 0000 0000 002", CardBrand.AMERICAN_EXPRESS),
    ("6011000000000004", CardBrand.DISCOVER),
    ("5000000000000000", CardBrand.VISA),
    ("9999999999999999", CardBrand.VISA),
    ("", CardBrand.VISA),
])
def test_detect_card_brand(number, brand):
    assert detect_card_brand(number) == brand


def test_validate_card_rejects_short_number():
    result = validate_card("4242 4242 4242 424", "12/28", "123")

    assert not result.is_valid
    assert result.field == "card_number"


def test_validate_card_rejects_short_expiry():
    result = validate_card("4242 4242 4242 4242", "12/2", "123")

    assert result.field == "expiry_date"


def test_validate_card_rejects_short_cvv():
    result = validate_card("4242 4242 4242 4242", "12/28", "12")

    assert result.field == "cvv"


def test_validate_card_accepts_complete_input():
    assert validate_card("4242 4242 4242 4242", "12/28", "123").is_valid


@pytest.mark.parametrize("ending,reason", [
    ("0002", DeclineReason.INSUFFICIENT_FUNDS),
    ("0004", DeclineReason.EXPIRED_CARD),
    ("0005", DeclineReason.BLOCKED_CARD),
    ("0008", DeclineReason.NETWORK_ERROR),
    ("0010", DeclineReason.SECURITY_REJECTION),
])
def test_known_endings_are_declined(gateway, ending, reason):
    with pytest.raises(PaymentDeclinedError) as exc_info:
        asyncio.run(gateway.authorize(_card("400000000000" + ending)))

    assert exc_info.value.reason == reason
    assert str(exc_info.value) == reason.message


def test_insufficient_funds_message():
    assert "insufficient funds" in DeclineReason.INSUFFICIENT_FUNDS.message


@pytest.mark.parametrize("number", ["4242424242424242", "4000000000001111", "5500000000001111"])
def test_other_endings_are_authorized(gateway, number):
    result = asyncio.run(gateway.authorize(_card(number)))

    assert result.card_last4 == number[-4:]
    assert result.card_brand == detect_card_brand(number)
    assert result.transaction_id.startswith("TXN-")
    assert re.fullmatch(r"AUTH-[A-Z0-9]{6}", result.authorization_code)
    assert result.processed_at.tzinfo is not None


def test_invalid_card_fails_before_processing(gateway):
    payment = _card("4242")

    with pytest.raises(CardValidationError) as exc_info:
        asyncio.run(gateway.authorize(payment))

    assert exc_info.value.field == "card_number"


def test_processing_delay_is_applied():
    gateway = SimulatedPaymentGateway(processing_delay=0.05)

    started = time.monotonic()
    asyncio.run(gateway.authorize(_card("4242424242424242")))

    assert time.monotonic() - started >= 0.05


def test_custom_decline_table():
    gateway = SimulatedPaymentGateway(
        processing_delay=0,
        decline_table={"4242": DeclineReason.BLOCKED_CARD},
    )

    with pytest.raises(PaymentDeclinedError):
        asyncio.run(gateway.authorize(_card("4242424242424242")))


def test_card_details_are_hidden_from_repr():
    text = repr(_card("4242424242424242"))

    assert "4242" not in text
    assert "123" not in text
