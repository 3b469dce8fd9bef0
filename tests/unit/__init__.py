"""Unit tests for individual components in isolation.

Ensures fast execution with no network access.

Coverage:
    - client/: gateway error normalization, health retries, configuration
    - chat/: session state machine, orchestration of chat turns
    - uploads/: file selection, status transitions, job polling

Uses scripted gateways and manual sleepers instead of real timers. Follows
single responsibility per test function. Leverages pytest-check for multiple
assertions per test.
"""
