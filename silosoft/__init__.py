"""
Silosoft - cooperative feature-building card game engine.
"""

__version__ = "1.0.0"
