"""
Infrastructure layer - external system integrations.
Keeps the sales logic clean from OS and socket details.
"""

from .channel import ChannelClient, ChannelServer
from .shared_memory import NamedMutex, SalesMirror

__all__ = ['ChannelClient', 'ChannelServer', 'NamedMutex', 'SalesMirror']
