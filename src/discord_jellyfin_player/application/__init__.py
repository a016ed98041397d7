"""
Application Layer

Orchestrates domain objects and infrastructure ports.

Structure:
- services/: per-guild playback sessions, the session registry, the
  acquisition pipeline and the event bridge
- interfaces/: Port interfaces for infrastructure adapters
"""
