"""
Ledger Transport
================

Strategy interface for the wire between a connected gateway and the
network. A transport is opened once per gateway connection and closed when
the gateway disconnects.

Version: 0.1.0
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from shared.config import FabricMode, FabricSettings
from shared.fabric.profile import ConnectionProfile
from shared.fabric.wallet import Identity


@dataclass(frozen=True)
class DiscoveryOptions:
    """Service discovery options."""

    enabled: bool = True
    as_localhost: bool = True


class LedgerTransport(ABC):
    """
    Abstract base class for ledger transports.

    Implements the Strategy pattern for the different ledger modes.
    """

    @property
    @abstractmethod
    def mode(self) -> FabricMode:
        """Get the transport mode."""
        ...

    @abstractmethod
    async def open(
        self,
        profile: ConnectionProfile,
        identity: Identity,
        discovery: DiscoveryOptions,
    ) -> None:
        """
        Prepare the transport for calls made as ``identity``.

        Args:
            profile: Network topology
            identity: Signing identity taken from the wallet
            discovery: Discovery options

        Raises:
            GatewayConnectionError: If the network cannot be reached
        """
        ...

    @abstractmethod
    async def submit(
        self,
        channel: str,
        chaincode: str,
        transaction: str,
        args: Sequence[str],
    ) -> bytes:
        """
        Endorse, order and commit a transaction.

        Returns:
            The transaction's return payload

        Raises:
            TransactionError: If endorsement or commit fails
        """
        ...

    @abstractmethod
    async def evaluate(
        self,
        channel: str,
        chaincode: str,
        transaction: str,
        args: Sequence[str],
    ) -> bytes:
        """
        Run a transaction on a single peer without committing it.

        Returns:
            The transaction's return payload

        Raises:
            TransactionError: If the chaincode returns an error
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release anything acquired by ``open``."""
        ...


def create_transport(fabric: FabricSettings) -> LedgerTransport:
    """
    Build a fresh transport for the configured mode.

    Args:
        fabric: Fabric settings

    Returns:
        Unopened LedgerTransport
    """
    if fabric.mode == FabricMode.MOCK:
        from shared.fabric.mock import MockLedgerTransport

        return MockLedgerTransport()
    if fabric.mode == FabricMode.FABRIC:
        from shared.fabric.peer_cli import PeerCliTransport

        return PeerCliTransport(
            peer_binary=fabric.peer_binary,
            fabric_cfg_path=fabric.fabric_cfg_path,
        )
    raise ValueError(f"Unknown ledger mode: {fabric.mode}")
