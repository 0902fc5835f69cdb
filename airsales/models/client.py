"""
Client waiting to buy a ticket.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Client:
    id: int

    def __str__(self):
        return f"Client #{self.id}"
