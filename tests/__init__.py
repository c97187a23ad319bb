"""
Tests Package - Unit and Integration Tests

Test structure:
- tests/unit/ - Fast, isolated unit tests (no network)
- tests/integration/ - Full backup runs against a fake listmonk client
- tests/conftest.py - Shared fixtures (settings, fake API client, fake mailer)
"""
