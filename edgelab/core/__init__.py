"""Core mathematics and configuration for the EdgeLab card engine.

This package contains pure, sport-agnostic building blocks:

- ``odds_math``    — American/decimal conversion, implied probability, profit
- ``kelly``        — full and fractional Kelly sizing
- ``sport_config`` — sport/market identifiers and the edge-floor table
- ``time_window``  — Eastern-time kickoff windows
- ``card_config``  — every tunable of the engine in one frozen bundle

Nothing in this package imports from ``edgelab.services`` or ``edgelab.main``.
All modules are side-effect-free and unit-testable in isolation.
"""
