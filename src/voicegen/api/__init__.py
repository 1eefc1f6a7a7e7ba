"""
FastAPI REST API Layer for voicegen.

This package defines all HTTP endpoints:
    - routes.py: /api/generate-voice, /api/voice-history, /health, /metrics
    - schemas.py: Response Pydantic models
    - dependencies.py: FastAPI dependency injection
    - errors.py: Exception handlers (405, invalid JSON, 500)
"""
