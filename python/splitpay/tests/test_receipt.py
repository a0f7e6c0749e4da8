"""Unit tests for receipt formatting."""

from decimal import Decimal

import pytest

from splitpay.constants import MSG_FINALIZED, MSG_FINALIZED_LIMITED
from splitpay.receipt import explorer_url, format_amount, format_fallback_receipt, format_receipt


class TestFormatAmount:
    @pytest.mark.parametrize(
        "amount,decimals,expected",
        [
            (10.5, 2, "10,50"),
            (Decimal("10.50"), 2, "10,50"),
            ("0.125", 2, "0,13"),
            (1234.5, 2, "1234,50"),
            (12345.5, 2, "12.345,50"),
            (1234567, 2, "1.234.567,00"),
            ("10.5", 4, "10,5000"),
            (7, 0, "7"),
        ],
    )
    def test_spanish_locale(self, amount, decimals, expected):
        assert format_amount(amount, decimals) == expected


class TestExplorerUrl:
    def test_default_template(self):
        url = explorer_url(123456, 2)
        assert url == "https://assethub-polkadot.subscan.io/extrinsic/123456-2"

    def test_block_and_index_fields(self):
        assert explorer_url(7, 3, "https://x/ledger/{block}#{index}") == "https://x/ledger/7#3"


class TestFormatReceipt:
    def test_with_extrinsic_index(self):
        receipt = format_receipt("USDT", Decimal("10.50"), 123456, 2)
        assert "Amount in USDT: 10,50." in receipt.message
        assert receipt.message.startswith(
            "Amount in USDT: 10,50. Payment finalized in block: 123456"
        )
        assert receipt.explorer_url.endswith("123456-2")
        assert receipt.message.endswith(", " + receipt.explorer_url)
        assert receipt.block_number == 123456
        assert receipt.extrinsic_index == 2
        assert receipt.status_message == MSG_FINALIZED

    def test_without_extrinsic_index(self):
        receipt = format_receipt("DOT", 1, 99)
        assert receipt.message == "Amount in DOT: 1,00. Payment finalized in block: 99"
        assert receipt.explorer_url is None

    def test_custom_template(self):
        receipt = format_receipt(
            "XLM", 5, 42, 1, explorer_url_template="https://stellar.expert/explorer/testnet/ledger/{block}"
        )
        assert receipt.explorer_url == "https://stellar.expert/explorer/testnet/ledger/42"

    def test_display_decimals(self):
        receipt = format_receipt("USDT", "10.5", 1, display_decimals=4)
        assert receipt.formatted_amount == "10,5000"

    def test_immutable(self):
        receipt = format_receipt("DOT", 1, 1)
        with pytest.raises(AttributeError):
            receipt.block_number = 2

    def test_share_data(self):
        receipt = format_receipt("USDT", "10.5", 123456, 2, payer="P", recipient="R")
        data = receipt.to_share_data()
        assert data["amount"] == "10.5"
        assert data["currency"] == "USDT"
        assert data["senderAddress"] == "P"
        assert data["recipientAddress"] == "R"
        assert data["blockNumber"] == 123456
        assert data["explorerUrl"].endswith("123456-2")
        assert "timestamp" in data


class TestFallbackReceipt:
    def test_message(self):
        receipt = format_fallback_receipt("BRLd", "2")
        assert receipt.message == "Amount in BRLd: 2,00. Payment confirmed, block details unavailable."
        assert receipt.block_number is None
        assert receipt.explorer_url is None
        assert receipt.status_message == MSG_FINALIZED_LIMITED
