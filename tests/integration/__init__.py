"""Integration tests for components working together as a system.

No mocks for the client - tests real HTTP interactions.

Coverage:
    - Health probing and reconnection
    - Chat turns with server-assigned session ids
    - Synchronous and job-tracked uploads
    - Clearing documents

Runs against an in-process FastAPI stand-in of the remote API through
httpx's ASGI transport, so no external services are required.
"""
