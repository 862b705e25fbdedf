"""
Watch Commander: a SWAT squad management game engine.

Generated content (officers, missions, situations, suspects) comes from a
text-generation backend through the gateway; every rule that touches the
campaign lives in the pure state engine under ``systems``.
"""

from .session import CampaignSession

__version__ = "1.0.0"

__all__ = ["CampaignSession", "__version__"]
