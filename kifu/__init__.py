"""
Kifu - Go rules and state-tracking engine for online game clients.

The engine mirrors a game hosted on a remote server and provides:
- Immutable, branchable board positions with move legality
- Territory classification and configurable scoring
- Local byo-yomi / Canadian clock countdowns
- A move tree of analysis branches
- A game orchestrator driven by authoritative snapshots
"""

__version__ = "0.1.0"
