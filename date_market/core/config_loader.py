"""Configuration loading utilities."""

import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv


DEFAULT_VOUCH_CONFIG = {
    'base_budget': 20.0,
    'points_per_friend': 3.0,
    'reward_per_point': 1.0,
    'penalty_per_point': 2.0,
    'apply_on_market_resolve': False,
}

DEFAULT_SETTLEMENT_DECIMALS = 6


def load_config(path: str = "config/config.yaml") -> dict:
    """
    Load YAML configuration file from specified path and return as dictionary.

    Args:
        path: Configuration file path (default: config/config.yaml)

    Returns:
        Validated configuration dictionary with defaults applied

    Raises:
        FileNotFoundError: If configuration file doesn't exist
        ValueError: If configuration file is empty or invalid
    """
    # date_market/core/config_loader.py -> project root
    root_dir = Path(__file__).parent.parent.parent
    env_path = root_dir / '.env'
    if env_path.exists():
        load_dotenv(env_path)

    config_path = Path(path)
    if not config_path.is_absolute():
        config_path = root_dir / path

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file does not exist: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f)

    if not config:
        raise ValueError(f"Configuration file is empty or has invalid format: {path}")

    return validate_config(config)


def validate_config(config: dict) -> dict:
    """
    Validate a raw configuration dictionary and fill in defaults.

    Args:
        config: Raw configuration dictionary

    Returns:
        The same dictionary, normalized

    Raises:
        ValueError: Configuration validation failed
    """
    if not isinstance(config, dict):
        raise ValueError("Configuration must be a dictionary")

    database = config.setdefault('database', {}) or {}
    config['database'] = database
    env_url = os.environ.get('DATABASE_URL')
    if env_url:
        database['url'] = env_url
    if not database.get('url'):
        raise ValueError(
            "Database URL not configured. Set 'database.url' in config or the DATABASE_URL "
            "environment variable. Example: sqlite:///date_market.db"
        )

    config['vouch'] = _validate_vouch(config.get('vouch') or {})

    settlement = config.setdefault('settlement', {}) or {}
    config['settlement'] = settlement
    decimals = settlement.setdefault('decimals', DEFAULT_SETTLEMENT_DECIMALS)
    if not isinstance(decimals, int) or isinstance(decimals, bool) or not 0 <= decimals <= 18:
        raise ValueError(f"settlement.decimals must be an integer between 0 and 18, current value: {decimals}")

    if config.get('blockchain'):
        config['blockchain'] = _validate_blockchain(config['blockchain'])

    api = config.setdefault('api', {}) or {}
    config['api'] = api
    api.setdefault('cors_origins', ['*'])

    config.setdefault('logging', {})

    return config


def _validate_vouch(vouch: dict) -> dict:
    """
    Validate vouch ledger constants.

    Args:
        vouch: 'vouch' configuration section

    Returns:
        Section with defaults applied
    """
    if not isinstance(vouch, dict):
        raise ValueError("'vouch' configuration must be a dictionary")

    validated = dict(DEFAULT_VOUCH_CONFIG)
    validated.update(vouch)

    for key in ('base_budget', 'points_per_friend', 'reward_per_point', 'penalty_per_point'):
        value = validated[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            raise ValueError(f"vouch.{key} must be a non-negative number, current value: {value}")

    if not isinstance(validated['apply_on_market_resolve'], bool):
        raise ValueError("vouch.apply_on_market_resolve must be true or false")

    return validated


def _validate_blockchain(blockchain: dict) -> dict:
    """
    Validate the blockchain bridge configuration.

    Args:
        blockchain: 'blockchain' configuration section

    Returns:
        Section with defaults applied
    """
    if not isinstance(blockchain, dict):
        raise ValueError("'blockchain' configuration must be a dictionary")

    if not blockchain.get('rpc_url'):
        raise ValueError("Blockchain config missing required field: rpc_url")

    if not blockchain.get('usdc_address'):
        raise ValueError("Blockchain config missing required field: usdc_address")

    chain_id = blockchain.setdefault('chain_id', 84532)
    if not isinstance(chain_id, int) or isinstance(chain_id, bool):
        raise ValueError(f"blockchain.chain_id must be an integer, current value: {chain_id}")

    blockchain.setdefault('usdc_decimals', DEFAULT_SETTLEMENT_DECIMALS)
    blockchain.setdefault('timeout', 30)
    blockchain.setdefault('operator_key_env', None)

    return blockchain


def load_operator_key(blockchain_config: dict) -> Optional[str]:
    """
    Load the operator private key used to sign contract transactions.

    Args:
        blockchain_config: 'blockchain' configuration section

    Returns:
        Private key string, or None when no operator is configured

    Raises:
        ValueError: Variable named but not set
    """
    env_var = blockchain_config.get('operator_key_env')
    if not env_var:
        return None

    key = os.environ.get(env_var)
    if not key:
        raise ValueError(
            f"Environment variable '{env_var}' not set, cannot load blockchain operator key"
        )
    return key
