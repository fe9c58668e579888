"""
Delayer - Redis-backed delayed job queue.

Producers push messages with a delay, a promoter moves due jobs into
per-topic ready queues, and consumers pop them in FIFO order.
"""

__version__ = "1.0.0"
