"""
Presence Backend - shared world presence registry and broadcaster.
"""

__version__ = "0.1.0"
