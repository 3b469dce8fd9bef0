"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Chat session list with switching and deletion
    - Message display for the active session
    - PDF upload with per-file and overall progress
    - Connectivity banner while the API is unreachable

Contains no business logic. Forwards every user intent to the AppContext
and re-renders from its state.
"""
