"""
Mock implementations for testing.

Provides mocks for external dependencies:
- Identity provider: static verifier and a transport-mocked HTTP verifier
- Clock: controllable time for impersonation expiry
- Record store: session factories that fail on commit
"""

from tests.mocks.mock_clock import FakeClock
from tests.mocks.mock_identity import StaticIdentityVerifier, create_http_verifier
from tests.mocks.mock_session import create_failing_session_factory

__all__ = [
    "FakeClock",
    "StaticIdentityVerifier",
    "create_failing_session_factory",
    "create_http_verifier",
]
