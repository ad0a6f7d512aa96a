"""
Uncover - Card Effect Resolution Engine

A deterministic, data-driven engine for a two-player lane card game.
The engine loads a card catalog (declarative effect definitions) and provides:
- Catalog validation and loading
- Effect resolution with one outstanding decision at a time
- A pending effect queue and reactive triggers
- Decision adapters for the automated opponent
"""

__version__ = "0.1.0"
