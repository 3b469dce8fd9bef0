"""Document Assistant client - chat with your documents through a remote RAG API.

Combines httpx for bounded-time API calls, Pydantic for data validation,
and NiceGUI for the chat interface.

Components:
    - client: request gateway, connectivity monitoring, configuration
    - chat: sessions and the orchestration of chat turns
    - uploads: PDF selection, upload submission, ingestion job polling
    - models: request/response schemas
    - ui: web interface for chat interactions
"""

__version__ = "0.1.0"
