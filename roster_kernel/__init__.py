"""
Roster Kernel - shift rosters, attendance and cross-project cost sharing.

Provides:
- Period-scoped rosters with a closed shift-code vocabulary
- Staff and project lifecycle with soft deactivation
- Directed cost-sharing edges between projects
- Typed errors and structured logging shared by every layer
"""

__version__ = "0.1.0"
