"""Orchestration strategy implementations.

Strategies:
- sequential: Backends one at a time in registration order, first success wins
- parallel_race: All backends concurrently, registration-order tie-break
- targeted: One named backend, optional escalation to sequential fallback
"""

__all__: list[str] = []
