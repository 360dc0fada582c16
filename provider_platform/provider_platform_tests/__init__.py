"""
provider_platform_tests package

Tests for the Provider API service:

- Provider CRUD routes and their status codes (`test_providers.py`)
- Registration, login, lockout and token issuance (`test_auth.py`)
- Payload validation problems (`test_validation.py`)
- Settings, health probes and the grant_claim admin script
"""
