"""
pitboss: a casino blackjack engine.

Single-player sessions run through the pure reducer in `pitboss.state`;
multiplayer tables use the per-action operations in `pitboss.multiplayer`.
"""

__version__ = "0.1.0"
