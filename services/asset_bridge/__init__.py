"""
Asset Bridge Service.

REST front end for the ``asset-transfer-basic`` chaincode on a
Hyperledger Fabric network.

Endpoints:
- POST /assets        CreateAsset(id, value)
- GET  /assets/{id}   ReadAsset(id)
- GET  /assets        GetAllAssets()
"""
