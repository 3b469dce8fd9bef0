"""Test package for the document assistant client.

Provides coverage for all components with unit tests for isolated logic
and integration tests for complete workflows.

Structure:
    - unit/: Individual component tests with scripted gateways
    - integration/: Full client against an in-process stand-in API

Leverages pytest with pytest-asyncio and pytest-check for soft assertions.
"""
