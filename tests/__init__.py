"""
Asset Bridge Test Suite
=======================

Test organization:
- tests/unit/                   - Fabric client layer (no network)
- tests/services/asset_bridge/  - HTTP API against the mock ledger

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
    pytest --cov=shared            # With coverage
"""
