"""
Fabric Module
=============

Client layer for Hyperledger Fabric networks.

Supports:
- Fabric (drives the ``peer`` CLI)
- Mock (in-memory ``asset-transfer-basic`` ledger for development/testing)

Features:
- Connection profile loading
- Filesystem and in-memory wallets
- Gateway / Network / Contract handles with submit and evaluate

Usage:
    from shared.fabric import (
        Gateway,
        GatewayOptions,
        Wallets,
        load_connection_profile_async,
    )

    profile = await load_connection_profile_async(Path("connection.json"))
    wallet = await Wallets.new_file_system_wallet("wallet")

    async with Gateway() as gateway:
        await gateway.connect(profile, GatewayOptions(wallet=wallet, identity="User1"))
        network = await gateway.get_network("mychannel")
        contract = network.get_contract("asset-transfer-basic")
        await contract.submit_transaction("CreateAsset", "asset1", "100")
"""

from shared.fabric.exceptions import (
    ConnectionProfileError,
    FabricError,
    GatewayConnectionError,
    IdentityNotFoundError,
    TransactionError,
    WalletError,
)
from shared.fabric.gateway import Contract, Gateway, GatewayOptions, Network
from shared.fabric.mock import MockLedger, MockLedgerTransport, get_mock_ledger, reset_mock_ledger
from shared.fabric.profile import (
    ConnectionProfile,
    load_connection_profile,
    load_connection_profile_async,
)
from shared.fabric.transport import DiscoveryOptions, LedgerTransport, create_transport
from shared.fabric.wallet import (
    FileSystemWallet,
    Identity,
    InMemoryWallet,
    Wallet,
    Wallets,
    X509Credentials,
)

__all__ = [
    # Gateway
    "Gateway",
    "GatewayOptions",
    "DiscoveryOptions",
    "Network",
    "Contract",
    # Profile
    "ConnectionProfile",
    "load_connection_profile",
    "load_connection_profile_async",
    # Wallet
    "Wallet",
    "Wallets",
    "FileSystemWallet",
    "InMemoryWallet",
    "Identity",
    "X509Credentials",
    # Transports
    "LedgerTransport",
    "create_transport",
    "MockLedger",
    "MockLedgerTransport",
    "get_mock_ledger",
    "reset_mock_ledger",
    # Errors
    "FabricError",
    "ConnectionProfileError",
    "WalletError",
    "IdentityNotFoundError",
    "GatewayConnectionError",
    "TransactionError",
]
