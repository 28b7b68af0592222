"""
Fabric Exceptions
=================

Error hierarchy for the Fabric client layer. Every error carries a
human-readable message that is safe to hand back to API callers verbatim.
"""


class FabricError(Exception):
    """Base class for all Fabric client errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConnectionProfileError(FabricError):
    """The connection profile is missing, unreadable or malformed."""


class WalletError(FabricError):
    """The wallet could not be opened or an entry could not be decoded."""


class IdentityNotFoundError(WalletError):
    """The requested identity label has no entry in the wallet."""

    def __init__(self, label: str) -> None:
        super().__init__(f"Identity not found in wallet: {label}")
        self.label = label


class GatewayConnectionError(FabricError):
    """The gateway could not reach the network or is not connected."""


class TransactionError(FabricError):
    """A submit or evaluate call was rejected by the network or chaincode."""

    def __init__(self, transaction: str, message: str) -> None:
        super().__init__(message)
        self.transaction = transaction
