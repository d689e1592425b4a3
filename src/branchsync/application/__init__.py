"""
Application layer: partitioning, carryover, reconciliation and the
per-branch sync orchestrator.
"""
