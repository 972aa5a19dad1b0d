"""
Utility functions module.

Time Semantics:
- All internal timestamps are timezone-aware UTC datetimes
- Trading-window checks convert wall-clock time into the exchange timezone
- Clocks are injected as zero-argument callables so tests can pin "now"
"""
