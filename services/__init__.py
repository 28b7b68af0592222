"""
Services
========

HTTP services built on the shared library.

Services:
- asset_bridge: REST bridge to the asset-transfer-basic chaincode
"""

__all__ = [
    "asset_bridge",
]
