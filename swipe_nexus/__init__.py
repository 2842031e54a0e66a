"""
Swipe Nexus - a grid arcade game.

The simulation lives in ``swipe_nexus.gameplay`` and has no UI dependencies.
"""

__version__ = "0.1.0"
