"""
Mnemonic Realms combat framework.

Provides the turn-based combat core built on top of the engine:
- Components (data-only, Pydantic models)
- Battle (initializer, turn order, executor, damage, effects, AI, outcome)
"""
