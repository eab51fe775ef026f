"""
Dialogue framework module.

Provides the pieces that sit between a compiled dialogue script and the
engine world:
- Dialogue (runner, command dispatch, presenter and storage interfaces)
"""
