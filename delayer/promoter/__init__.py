"""
Promoter module.
Contains the process that moves due jobs into their ready queues.
"""

from delayer.promoter.main import Promoter, run

__all__ = ["Promoter", "run"]
