"""
Sulabh session test suite.

This package contains all test modules organized by test type:
- unit/ - Session store, transport, limiter, credentials and lifecycle tests
- integration/ - API tests through the ASGI test client
- fixtures/ - Shared assertion helpers
- data/ - Test data factories
"""
