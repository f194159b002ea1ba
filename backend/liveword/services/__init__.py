"""Business Logic Services.

This package contains the service modules behind the relay.

Service Categories:
- STT: SpeechStream lifecycle and duration-limit restarts
- Session: per-connection state machine, Broadcast Registry
- Translation: final-transcript fan-out, TTS caching
- Connection: WebSocket connection management

External integrations:
- gcp: Google Cloud Speech, Translation, TTS
"""
