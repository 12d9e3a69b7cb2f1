"""
Deterministic fence quantity engine.

Pure Python math. No database access.
Given a FenceSpecification and the run being quoted (net length, lines, gates),
produce material lines and labor lines with unrounded quantities and costs.
"""
