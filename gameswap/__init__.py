"""
GameSwap - Source Package

A catalog manager where several accounts each own a game collection
and can lend games to one another.

DESIGN PRINCIPLES:
1. Engine computes → User confirms → Store commits
2. One store write per user action
3. A rejected action mutates nothing
4. Every step is logged
"""

__version__ = "1.0.0"
__author__ = "GameSwap Team"
