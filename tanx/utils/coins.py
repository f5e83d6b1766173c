"""
Coin and network configuration lookups.

Every signed or gas-spending operation resolves its coin here first, so an
unknown or non-allow-listed coin is rejected before any signature exists.
"""

import logging
from typing import Any, Callable, Mapping, Optional, Union

from ..exceptions import CoinNotFoundError
from ..models import (
    AllowListKind,
    CoinConfig,
    CrossChainToken,
    Network,
    NetworkCoinConfig,
)

logger = logging.getLogger(__name__)


NATIVE_CURRENCY = {
    Network.POLYGON: "pol",
    Network.OPTIMISM: "eth",
    Network.ARBITRUM: "eth",
    Network.LINEA: "eth",
    Network.SCROLL: "eth",
    Network.MODE: "eth",
    Network.ETHEREUM: "eth",
}


def _listed(config: NetworkCoinConfig) -> Any:
    return config.tokens.keys()


def _depositable(config: NetworkCoinConfig) -> Any:
    return config.allowed_tokens_for_deposit


def _fast_withdrawable(config: NetworkCoinConfig) -> Any:
    return config.allowed_tokens_for_fast_wd


ALLOW_LISTS: dict[AllowListKind, Callable[[NetworkCoinConfig], Any]] = {
    AllowListKind.TOKENS: _listed,
    AllowListKind.DEPOSIT: _depositable,
    AllowListKind.WITHDRAWAL: _fast_withdrawable,
}


def normalize_network(network: Union[Network, str]) -> str:
    """Network name in the upper-case form used as configuration key."""
    if isinstance(network, Network):
        return network.value
    return str(network).upper()


def resolve_home_coin(coin_stats: Union[Mapping[str, Any], list], symbol: str) -> CoinConfig:
    """
    Find a coin in the home-network coin table.

    Args:
        coin_stats: Payload of the coin status endpoint (mapping or list of coin entries)
        symbol: Coin symbol, e.g. ``usdc``

    Returns:
        Coin configuration

    Raises:
        CoinNotFoundError: If no entry carries this symbol
    """
    entries = coin_stats.values() if isinstance(coin_stats, Mapping) else coin_stats
    for entry in entries:
        if isinstance(entry, Mapping) and entry.get("symbol") == symbol:
            return CoinConfig.model_validate(entry)

    raise CoinNotFoundError(f"Coin '{symbol}' not found", symbol=symbol, network=Network.ETHEREUM.value)


def resolve_cross_chain_coin(
    network_config: Union[NetworkCoinConfig, Mapping[str, Any]],
    symbol: str,
    kind: Union[AllowListKind, str],
    network: Optional[Union[Network, str]] = None
) -> CrossChainToken:
    """
    Find a coin in one allow-list of a cross-chain network.

    Presence in another list does not count: a coin can be listed on a
    network yet not be depositable or fast-withdrawable there.

    Args:
        network_config: Configuration of a single network
        symbol: Coin symbol
        kind: Which allow-list to check
        network: Network name, carried in the error

    Returns:
        The network's token entry for this coin

    Raises:
        CoinNotFoundError: If the symbol is not in the selected list or the kind is unknown
    """
    network_name = normalize_network(network) if network is not None else None

    try:
        kind = AllowListKind(kind.upper() if isinstance(kind, str) else kind)
    except ValueError as e:
        raise CoinNotFoundError(f"Allow-list kind '{kind}' not found",
                                symbol=symbol, network=network_name) from e

    if not isinstance(network_config, NetworkCoinConfig):
        network_config = NetworkCoinConfig.model_validate(network_config)

    if symbol not in ALLOW_LISTS[kind](network_config) or symbol not in network_config.tokens:
        raise CoinNotFoundError(
            f"Coin '{symbol}' not found",
            symbol=symbol,
            network=network_name
        )

    return network_config.tokens[symbol]


def select_network_config(
    all_networks: Mapping[str, Any],
    network: Union[Network, str]
) -> NetworkCoinConfig:
    """
    Pick one network out of the ``network_config`` map.

    Raises:
        CoinNotFoundError: If the network is not configured
    """
    name = normalize_network(network)
    config = all_networks.get(name)
    if config is None:
        raise CoinNotFoundError(f"Network '{name}' not found", network=name)
    return NetworkCoinConfig.model_validate(config)


def native_currency(network: Union[Network, str]) -> str:
    """Symbol of the gas currency of an EVM network."""
    name = normalize_network(network)
    try:
        return NATIVE_CURRENCY[Network(name)]
    except (KeyError, ValueError) as e:
        raise CoinNotFoundError(f"No native currency for network '{name}'", network=name) from e


def stark_asset_type(coin: CoinConfig) -> int:
    """StarkEx asset id of a home-network coin as an integer."""
    if not coin.stark_asset_id:
        raise CoinNotFoundError(f"Coin '{coin.symbol}' has no StarkEx asset id",
                                symbol=coin.symbol, network=Network.ETHEREUM.value)
    return int(coin.stark_asset_id, 16)
