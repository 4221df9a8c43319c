"""
Session hosting for solo play.
"""

from pitboss.engine.session import BlackjackSession

__all__ = ["BlackjackSession"]
