"""
Gateway
=======

Application-facing entry point to a Fabric network::

    gateway = Gateway()
    await gateway.connect(profile, GatewayOptions(wallet=wallet, identity="User1"))
    network = await gateway.get_network("mychannel")
    contract = network.get_contract("asset-transfer-basic")
    await contract.submit_transaction("CreateAsset", "asset1", "100")
    payload = await contract.evaluate_transaction("ReadAsset", "asset1")

Version: 0.1.0
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from types import TracebackType

from shared.config import get_settings
from shared.fabric.exceptions import (
    FabricError,
    GatewayConnectionError,
    IdentityNotFoundError,
)
from shared.fabric.profile import ConnectionProfile
from shared.fabric.transport import DiscoveryOptions, LedgerTransport, create_transport
from shared.fabric.wallet import Wallet
from shared.logging import get_logger

logger = get_logger(__name__)


@dataclass
class GatewayOptions:
    """Options for ``Gateway.connect``."""

    wallet: Wallet
    identity: str
    discovery: DiscoveryOptions = field(default_factory=DiscoveryOptions)


class Contract:
    """A chaincode deployed on a channel."""

    def __init__(self, network: Network, chaincode_id: str) -> None:
        self.network = network
        self.chaincode_id = chaincode_id

    async def submit_transaction(self, name: str, *args: str) -> bytes:
        """
        Submit a transaction to the ledger.

        The transaction is endorsed, ordered and committed; the call returns
        once it is committed.

        Args:
            name: Transaction function name
            *args: String arguments passed to the function

        Returns:
            The function's return payload
        """
        transport = self.network.gateway._require_transport()
        start = time.perf_counter()
        try:
            result = await transport.submit(self.network.name, self.chaincode_id, name, args)
        except FabricError as e:
            logger.warning(
                "transaction_submit_failed",
                channel=self.network.name,
                chaincode=self.chaincode_id,
                transaction=name,
                error=str(e),
            )
            raise

        logger.info(
            "transaction_submitted",
            channel=self.network.name,
            chaincode=self.chaincode_id,
            transaction=name,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return result

    async def evaluate_transaction(self, name: str, *args: str) -> bytes:
        """
        Evaluate a transaction without updating the ledger.

        Args:
            name: Transaction function name
            *args: String arguments passed to the function

        Returns:
            The function's return payload
        """
        transport = self.network.gateway._require_transport()
        start = time.perf_counter()
        try:
            result = await transport.evaluate(self.network.name, self.chaincode_id, name, args)
        except FabricError as e:
            logger.warning(
                "transaction_evaluate_failed",
                channel=self.network.name,
                chaincode=self.chaincode_id,
                transaction=name,
                error=str(e),
            )
            raise

        logger.info(
            "transaction_evaluated",
            channel=self.network.name,
            chaincode=self.chaincode_id,
            transaction=name,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return result


class Network:
    """A channel as seen through a connected gateway."""

    def __init__(self, gateway: Gateway, name: str) -> None:
        self.gateway = gateway
        self.name = name

    def get_contract(self, chaincode_id: str) -> Contract:
        """Get a handle to a chaincode on this channel."""
        return Contract(self, chaincode_id)


class Gateway:
    """
    Connection to a Fabric network on behalf of one wallet identity.

    A gateway is single-use: connect, make calls, disconnect. It can be
    used as an async context manager to guarantee the disconnect.
    """

    def __init__(self, transport: LedgerTransport | None = None) -> None:
        self._transport = transport or create_transport(get_settings().fabric)
        self._connected = False
        self.identity: str | None = None

    async def connect(self, profile: ConnectionProfile, options: GatewayOptions) -> None:
        """
        Connect to the network described by ``profile``.

        Args:
            profile: Connection profile
            options: Wallet, identity label and discovery options

        Raises:
            IdentityNotFoundError: If the wallet has no such identity
            GatewayConnectionError: If the network cannot be reached
        """
        identity = await options.wallet.get(options.identity)
        if identity is None:
            raise IdentityNotFoundError(options.identity)

        await self._transport.open(profile, identity, options.discovery)
        self._connected = True
        self.identity = options.identity

        logger.debug(
            "gateway_connected",
            profile=profile.name,
            identity=options.identity,
            msp_id=identity.msp_id,
            mode=self._transport.mode.value,
        )

    async def get_network(self, name: str) -> Network:
        """Get the named channel."""
        self._require_transport()
        return Network(self, name)

    async def disconnect(self) -> None:
        """Release the connection. Safe to call more than once."""
        if self._connected:
            self._connected = False
            await self._transport.close()
            logger.debug("gateway_disconnected", identity=self.identity)

    def _require_transport(self) -> LedgerTransport:
        if not self._connected:
            raise GatewayConnectionError("Gateway is not connected")
        return self._transport

    async def __aenter__(self) -> Gateway:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.disconnect()
