"""
Air Sales Simulator

Concurrent seat allocation across a pool of sales workers, with a separate
observer process that watches revenue through shared memory and can end
the sale over a one-byte control channel.
"""

__version__ = "1.0.0"
