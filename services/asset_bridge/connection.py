"""
Connection Context
==================

Builds a fresh connection to the configured channel and chaincode for a
single request. Nothing is cached: the profile is re-read, the wallet
re-opened and the gateway re-connected every time.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends

from shared.config import FabricSettings, get_settings
from shared.fabric import (
    Contract,
    DiscoveryOptions,
    Gateway,
    GatewayOptions,
    LedgerTransport,
    Wallets,
    create_transport,
    load_connection_profile_async,
)
from shared.logging import get_logger


logger = get_logger(__name__)


def get_fabric_settings() -> FabricSettings:
    """Dependency returning the Fabric settings."""
    return get_settings().fabric


def get_transport(fabric: FabricSettings = Depends(get_fabric_settings)) -> LedgerTransport:
    """Dependency returning a new, unopened transport for this request."""
    return create_transport(fabric)


@asynccontextmanager
async def connect_to_fabric(
    fabric: FabricSettings,
    transport: LedgerTransport,
) -> AsyncIterator[Contract]:
    """
    Connect to the network and yield the configured contract.

    Args:
        fabric: Connection settings
        transport: Unopened transport the gateway will use

    Yields:
        Contract handle, valid until the context exits
    """
    profile = await load_connection_profile_async(fabric.connection_profile_path)
    wallet = await Wallets.new_file_system_wallet(fabric.wallet_dir)

    async with Gateway(transport) as gateway:
        await gateway.connect(
            profile,
            GatewayOptions(
                wallet=wallet,
                identity=fabric.identity,
                discovery=DiscoveryOptions(
                    enabled=fabric.discovery_enabled,
                    as_localhost=fabric.as_localhost,
                ),
            ),
        )
        network = await gateway.get_network(fabric.channel)
        logger.debug(
            "fabric_connected",
            channel=fabric.channel,
            contract=fabric.contract,
            identity=fabric.identity,
        )
        yield network.get_contract(fabric.contract)
