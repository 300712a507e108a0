"""
LocalLLM launcher plugin core.

Provides:
- Streaming client for Ollama-compatible /api/generate endpoints (NDJSON)
- Trigger-keyword preprocessing (clipboard substitution, send trigger)
- Query pipeline turning launcher input into displayable results
"""
