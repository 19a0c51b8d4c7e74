"""
Blockchain client for the DateMarket contracts.

Reads USDC balances and market pools, and submits the resolution
transaction for markets that are mirrored on chain.
"""

import os
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import requests
from eth_account import Account
from web3 import Web3

from date_market.core.config_loader import load_operator_key
from date_market.core.errors import ChainError, ValidationError

logger = logging.getLogger(__name__)

# Base Sepolia testnet
DEFAULT_CHAIN_ID = 84532
USDC_DECIMALS = 6
RESOLVE_GAS_LIMIT = 200000

# Minimal ERC20 ABI for balanceOf
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function",
    }
]

# DateMarket ABI (pool views and resolve only)
DATE_MARKET_ABI = [
    {
        "inputs": [],
        "name": "totalYesPool",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "totalNoPool",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "resolved",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "outcome",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "outcome", "type": "bool"}],
        "name": "resolve",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


def from_base_units(raw: int, decimals: int = USDC_DECIMALS) -> Decimal:
    """Convert integer base units to a token amount."""
    return Decimal(raw).scaleb(-decimals)


def checksum_address(address: str) -> str:
    """
    Validate and checksum an EVM address.

    Raises:
        ValidationError: If the address is malformed
    """
    if not address or not isinstance(address, str) or not Web3.is_address(address):
        raise ValidationError(f"Invalid wallet address: {address}")
    return Web3.to_checksum_address(address)


@dataclass(frozen=True)
class ChainMarketState:
    """Pool state of a DateMarket contract."""
    address: str
    total_yes_pool: Decimal
    total_no_pool: Decimal
    resolved: bool
    outcome: Optional[bool]


class ChainClient:
    """
    Thin wrapper around web3.py for the date market contracts.

    Responsibilities:
    1. Query USDC balances of user wallets
    2. Read pool state of DateMarket contracts
    3. Submit resolve() signed by the operator account
    """

    def __init__(
        self,
        rpc_url: str,
        usdc_address: str,
        chain_id: int = DEFAULT_CHAIN_ID,
        operator_key: Optional[str] = None,
        usdc_decimals: int = USDC_DECIMALS,
        timeout: int = 30,
        w3: Optional[Web3] = None
    ):
        """
        Initialize chain client.

        Args:
            rpc_url: JSON-RPC endpoint
            usdc_address: USDC token contract address
            chain_id: EVM chain id used when signing
            operator_key: Private key allowed to resolve markets (optional)
            usdc_decimals: USDC token decimals
            timeout: RPC and receipt timeout in seconds
            w3: Pre-built Web3 instance (tests inject a fake here)
        """
        self.rpc_url = rpc_url
        self.chain_id = chain_id
        self.usdc_decimals = usdc_decimals
        self.timeout = timeout
        self.w3 = w3 or self._init_web3(rpc_url, timeout)
        self.usdc_address = Web3.to_checksum_address(usdc_address)

        self._operator = Account.from_key(operator_key) if operator_key else None
        if self._operator:
            logger.info(f"Blockchain operator configured: {self._operator.address}")
        else:
            logger.info("No blockchain operator configured, on-chain resolution disabled")

    @classmethod
    def from_config(cls, blockchain_config: dict) -> "ChainClient":
        """Build a client from the validated 'blockchain' config section."""
        return cls(
            rpc_url=blockchain_config['rpc_url'],
            usdc_address=blockchain_config['usdc_address'],
            chain_id=blockchain_config.get('chain_id', DEFAULT_CHAIN_ID),
            operator_key=load_operator_key(blockchain_config),
            usdc_decimals=blockchain_config.get('usdc_decimals', USDC_DECIMALS),
            timeout=blockchain_config.get('timeout', 30),
        )

    @staticmethod
    def _init_web3(rpc_url: str, timeout: int) -> Web3:
        """Initialize Web3 client with proxy configuration from the environment."""
        session = requests.Session()
        proxy = os.environ.get('CHAIN_RPC_PROXY')
        if proxy:
            session.proxies = {'http': proxy, 'https': proxy}
            logger.info(f"Using proxy for chain RPC: {proxy}")

        provider = Web3.HTTPProvider(rpc_url, request_kwargs={'timeout': timeout}, session=session)
        return Web3(provider)

    @property
    def can_sign(self) -> bool:
        return self._operator is not None

    @property
    def operator_address(self) -> Optional[str]:
        return self._operator.address if self._operator else None

    def get_usdc_balance(self, address: str) -> Decimal:
        """
        Get USDC balance for a wallet.

        Args:
            address: Wallet address

        Returns:
            Balance in USDC, not raw units

        Raises:
            ValidationError: If the address is malformed
            ChainError: If the RPC call fails
        """
        owner = checksum_address(address)
        contract = self.w3.eth.contract(address=self.usdc_address, abi=ERC20_ABI)
        try:
            raw = contract.functions.balanceOf(owner).call()
        except Exception as e:
            logger.error(f"USDC balance query failed for {owner}: {e}")
            raise ChainError(f"Failed to query USDC balance: {e}") from e
        return from_base_units(raw, self.usdc_decimals)

    def get_market_state(self, contract_address: str) -> ChainMarketState:
        """
        Read pools and resolution flags of a DateMarket contract.

        Raises:
            ChainError: If any view call fails
        """
        address = checksum_address(contract_address)
        contract = self.w3.eth.contract(address=address, abi=DATE_MARKET_ABI)
        try:
            yes_raw = contract.functions.totalYesPool().call()
            no_raw = contract.functions.totalNoPool().call()
            resolved = contract.functions.resolved().call()
            outcome = contract.functions.outcome().call() if resolved else None
        except Exception as e:
            logger.error(f"Market state query failed for {address}: {e}")
            raise ChainError(f"Failed to read market contract {address}: {e}") from e

        return ChainMarketState(
            address=address,
            total_yes_pool=from_base_units(yes_raw, self.usdc_decimals),
            total_no_pool=from_base_units(no_raw, self.usdc_decimals),
            resolved=bool(resolved),
            outcome=bool(outcome) if outcome is not None else None,
        )

    def resolve_market(self, contract_address: str, outcome: bool) -> str:
        """
        Submit resolve(outcome) and wait for the receipt.

        Args:
            contract_address: DateMarket contract address
            outcome: True for YES, False for NO

        Returns:
            Transaction hash (hex)

        Raises:
            ChainError: If no operator is configured or the transaction fails
        """
        if not self._operator:
            raise ChainError("Blockchain operator not configured, cannot resolve on chain")

        address = checksum_address(contract_address)
        contract = self.w3.eth.contract(address=address, abi=DATE_MARKET_ABI)
        sender = self._operator.address

        try:
            txn = contract.functions.resolve(outcome).build_transaction({
                'from': sender,
                'nonce': self.w3.eth.get_transaction_count(sender),
                'gas': RESOLVE_GAS_LIMIT,
                'gasPrice': self.w3.eth.gas_price,
                'chainId': self.chain_id
            })

            signed_txn = self.w3.eth.account.sign_transaction(txn, private_key=self._operator.key)
            tx_hash = self.w3.eth.send_raw_transaction(signed_txn.raw_transaction)
            logger.info(f"Resolve transaction submitted for {address}: {tx_hash.hex()}")

            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.timeout)
        except Exception as e:
            logger.error(f"Resolve transaction failed for {address}: {e}", exc_info=True)
            raise ChainError(f"On-chain resolution failed: {e}") from e

        if receipt['status'] != 1:
            raise ChainError(f"Resolve transaction reverted: {tx_hash.hex()}")

        logger.info(f"Market {address} resolved on chain (outcome={'YES' if outcome else 'NO'})")
        return tx_hash.hex()
