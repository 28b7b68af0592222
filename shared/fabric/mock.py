"""
Mock Ledger
===========

In-memory stand-in for a Fabric network running the
``asset-transfer-basic`` chaincode, for development and testing.

World state is kept per (channel, chaincode) and shared by every
connection in the process, the way a real ledger outlives the requests
that talk to it. Evaluated transactions run against the world state but
their writes are discarded; submitted transactions commit them.

Version: 0.1.0
"""

import hashlib
import json
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from shared.config import FabricMode
from shared.fabric.exceptions import GatewayConnectionError, TransactionError
from shared.fabric.profile import ConnectionProfile
from shared.fabric.transport import DiscoveryOptions, LedgerTransport
from shared.fabric.wallet import Identity
from shared.logging import get_logger

logger = get_logger(__name__)

CONTRACT_NAME = "SmartContract"

WorldState = dict[str, bytes]


@dataclass
class _Execution:
    """Outcome of running a chaincode function: payload plus pending writes."""

    payload: bytes = b""
    writes: dict[str, bytes] = field(default_factory=dict)


@dataclass(frozen=True)
class LedgerTransaction:
    """Committed transaction record."""

    tx_id: str
    block_number: int
    channel: str
    chaincode: str
    transaction: str
    args: tuple[str, ...]
    msp_id: str | None


def _marshal(obj: object) -> bytes:
    """Compact JSON encoding matching the chaincode's output."""
    return json.dumps(obj, separators=(",", ":")).encode("utf-8")


class AssetTransferContract:
    """Functions of the ``asset-transfer-basic`` chaincode used by the bridge."""

    def __init__(self) -> None:
        self._functions: dict[str, tuple[int, Callable[..., _Execution]]] = {
            "CreateAsset": (2, self.create_asset),
            "ReadAsset": (1, self.read_asset),
            "AssetExists": (1, self.asset_exists),
            "GetAllAssets": (0, self.get_all_assets),
        }

    def execute(self, state: WorldState, transaction: str, args: Sequence[str]) -> _Execution:
        """
        Dispatch a transaction against a world state snapshot.

        Raises:
            TransactionError: On unknown functions, wrong arity or chaincode errors
        """
        if transaction not in self._functions:
            raise TransactionError(
                transaction,
                f"Function {transaction} not found in contract {CONTRACT_NAME}",
            )
        arity, handler = self._functions[transaction]
        if len(args) != arity:
            raise TransactionError(
                transaction,
                f"Incorrect number of params. Expected {arity}, received {len(args)}",
            )
        return handler(state, *args)

    def create_asset(self, state: WorldState, asset_id: str, value: str) -> _Execution:
        if asset_id in state:
            raise TransactionError("CreateAsset", f"the asset {asset_id} already exists")
        return _Execution(writes={asset_id: _marshal({"ID": asset_id, "Value": value})})

    def read_asset(self, state: WorldState, asset_id: str) -> _Execution:
        if asset_id not in state:
            raise TransactionError("ReadAsset", f"the asset {asset_id} does not exist")
        return _Execution(payload=state[asset_id])

    def asset_exists(self, state: WorldState, asset_id: str) -> _Execution:
        return _Execution(payload=b"true" if asset_id in state else b"false")

    def get_all_assets(self, state: WorldState) -> _Execution:
        # Range query order is lexical by key
        return _Execution(payload=b"[" + b",".join(state[k] for k in sorted(state)) + b"]")


class MockLedger:
    """
    In-memory ledger.

    Data is stored in memory and lost on restart.
    """

    def __init__(self, contract: AssetTransferContract | None = None) -> None:
        self._contract = contract or AssetTransferContract()
        self._block_number = 0
        self._world_state: dict[tuple[str, str], WorldState] = {}
        self._transactions: list[LedgerTransaction] = []

        logger.debug("mock_ledger_initialized")

    def _generate_tx_id(self) -> str:
        """Generate a mock transaction ID."""
        return hashlib.sha256(uuid.uuid4().bytes).hexdigest()

    def _state(self, channel: str, chaincode: str) -> WorldState:
        return self._world_state.setdefault((channel, chaincode), {})

    async def submit(
        self,
        channel: str,
        chaincode: str,
        transaction: str,
        args: Sequence[str],
        msp_id: str | None = None,
    ) -> bytes:
        """Execute a transaction and commit its writes."""
        state = self._state(channel, chaincode)
        result = self._contract.execute(dict(state), transaction, args)
        state.update(result.writes)

        self._block_number += 1
        record = LedgerTransaction(
            tx_id=self._generate_tx_id(),
            block_number=self._block_number,
            channel=channel,
            chaincode=chaincode,
            transaction=transaction,
            args=tuple(args),
            msp_id=msp_id,
        )
        self._transactions.append(record)

        logger.debug(
            "mock_transaction_committed",
            tx_id=record.tx_id,
            block_number=record.block_number,
            transaction=transaction,
        )
        return result.payload

    async def evaluate(
        self,
        channel: str,
        chaincode: str,
        transaction: str,
        args: Sequence[str],
    ) -> bytes:
        """Execute a transaction without committing its writes."""
        state = self._state(channel, chaincode)
        return self._contract.execute(dict(state), transaction, args).payload

    # =========================================================================
    # Test Utilities
    # =========================================================================

    @property
    def transactions(self) -> list[LedgerTransaction]:
        """Committed transactions, oldest first."""
        return list(self._transactions)

    def clear_all(self) -> None:
        """Clear all mock data (for testing)."""
        self._world_state.clear()
        self._transactions.clear()
        self._block_number = 0
        logger.debug("mock_ledger_cleared")

    def get_stats(self) -> dict[str, int]:
        """Get storage statistics."""
        return {
            "keys": sum(len(s) for s in self._world_state.values()),
            "transactions": len(self._transactions),
            "block_number": self._block_number,
        }


class MockLedgerTransport(LedgerTransport):
    """Transport that talks to the process-wide MockLedger."""

    def __init__(self, ledger: MockLedger | None = None) -> None:
        self._ledger = ledger or get_mock_ledger()
        self._identity: Identity | None = None

    @property
    def mode(self) -> FabricMode:
        return FabricMode.MOCK

    async def open(
        self,
        profile: ConnectionProfile,
        identity: Identity,
        discovery: DiscoveryOptions,
    ) -> None:
        """Simulate the connection handshake."""
        self._identity = identity
        logger.debug("mock_transport_opened", msp_id=identity.msp_id)

    def _require_open(self) -> Identity:
        if self._identity is None:
            raise GatewayConnectionError("Mock transport is not connected")
        return self._identity

    async def submit(
        self,
        channel: str,
        chaincode: str,
        transaction: str,
        args: Sequence[str],
    ) -> bytes:
        identity = self._require_open()
        return await self._ledger.submit(
            channel, chaincode, transaction, args, msp_id=identity.msp_id
        )

    async def evaluate(
        self,
        channel: str,
        chaincode: str,
        transaction: str,
        args: Sequence[str],
    ) -> bytes:
        self._require_open()
        return await self._ledger.evaluate(channel, chaincode, transaction, args)

    async def close(self) -> None:
        self._identity = None


# Global ledger instance
_ledger: MockLedger | None = None


def get_mock_ledger() -> MockLedger:
    """Get the process-wide mock ledger, creating it on first use."""
    global _ledger

    if _ledger is None:
        _ledger = MockLedger()
    return _ledger


def reset_mock_ledger() -> None:
    """Discard the process-wide mock ledger."""
    global _ledger
    _ledger = None
