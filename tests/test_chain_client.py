"""Tests for ChainClient with a mocked Web3 instance."""

import sys
import unittest
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock

from web3 import Web3

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from date_market.core.blockchain.chain_client import (
    ChainClient,
    checksum_address,
    from_base_units,
)
from date_market.core.errors import ChainError, ValidationError

USDC = Web3.to_checksum_address("0x036cbd53842c5426634e7929541ec2318f3dcf7e")
WALLET = "0x" + "22" * 20
MARKET = "0x" + "33" * 20
OPERATOR_KEY = "0x" + "11" * 32


def make_contract(**views):
    """Contract mock whose view functions return the given values."""
    contract = MagicMock()
    for name, value in views.items():
        getattr(contract.functions, name).return_value.call.return_value = value
    return contract


class UnitConversionTest(unittest.TestCase):
    def test_from_base_units(self):
        self.assertEqual(from_base_units(1500000), Decimal("1.5"))

    def test_checksum_address(self):
        self.assertEqual(checksum_address(USDC.lower()), USDC)
        with self.assertRaises(ValidationError):
            checksum_address("0x1234")


class ChainClientTest(unittest.TestCase):
    def setUp(self):
        self.w3 = MagicMock()

    def make_client(self, operator_key=None):
        return ChainClient("http://localhost:8545", USDC, operator_key=operator_key, w3=self.w3)

    def test_usdc_balance(self):
        self.w3.eth.contract.return_value = make_contract(balanceOf=12345678)

        balance = self.make_client().get_usdc_balance(WALLET)

        self.assertEqual(balance, Decimal("12.345678"))
        _, kwargs = self.w3.eth.contract.call_args
        self.assertEqual(kwargs["address"], USDC)

    def test_balance_rpc_failure(self):
        contract = MagicMock()
        contract.functions.balanceOf.return_value.call.side_effect = ConnectionError("rpc down")
        self.w3.eth.contract.return_value = contract

        with self.assertRaises(ChainError):
            self.make_client().get_usdc_balance(WALLET)

    def test_market_state(self):
        self.w3.eth.contract.return_value = make_contract(
            totalYesPool=100000000, totalNoPool=50000000, resolved=True, outcome=False
        )

        state = self.make_client().get_market_state(MARKET)

        self.assertEqual(state.total_yes_pool, Decimal("100"))
        self.assertEqual(state.total_no_pool, Decimal("50"))
        self.assertTrue(state.resolved)
        self.assertFalse(state.outcome)

    def test_resolve_requires_operator(self):
        client = self.make_client()

        self.assertFalse(client.can_sign)
        with self.assertRaises(ChainError):
            client.resolve_market(MARKET, True)

    def test_resolve_signs_and_waits_for_receipt(self):
        contract = MagicMock()
        contract.functions.resolve.return_value.build_transaction.return_value = {"to": MARKET}
        self.w3.eth.contract.return_value = contract
        self.w3.eth.get_transaction_count.return_value = 7
        self.w3.eth.gas_price = 1000
        self.w3.eth.send_raw_transaction.return_value = bytes.fromhex("ab" * 32)
        self.w3.eth.wait_for_transaction_receipt.return_value = {"status": 1}
        client = self.make_client(operator_key=OPERATOR_KEY)

        tx_hash = client.resolve_market(MARKET, True)

        self.assertEqual(tx_hash, "ab" * 32)
        contract.functions.resolve.assert_called_once_with(True)
        tx_params = contract.functions.resolve.return_value.build_transaction.call_args[0][0]
        self.assertEqual(tx_params["from"], client.operator_address)
        self.assertEqual(tx_params["nonce"], 7)
        self.assertEqual(tx_params["chainId"], 84532)
        self.w3.eth.account.sign_transaction.assert_called_once()

    def test_reverted_resolve(self):
        self.w3.eth.contract.return_value = MagicMock()
        self.w3.eth.send_raw_transaction.return_value = bytes.fromhex("cd" * 32)
        self.w3.eth.wait_for_transaction_receipt.return_value = {"status": 0}

        with self.assertRaises(ChainError):
            self.make_client(operator_key=OPERATOR_KEY).resolve_market(MARKET, False)


if __name__ == "__main__":
    unittest.main()
