"""
mapwright: visual source-to-target mapping graphs.

Resolves target field values live from sample data, compiles graphs into
flat execution rules for an external runtime, and round-trips them through
a layout-preserving Visual Config document.
"""

__version__ = "0.4.0"
