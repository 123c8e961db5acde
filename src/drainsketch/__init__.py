"""
Drainsketch - interactive land-drainage design and pricing engine.

This package provides the geometric feature model, drawing interaction state
machine, derived measurements, map styling projection and quote calculation
behind a drainage layout sketching tool.
"""

__version__ = "0.1.0"
