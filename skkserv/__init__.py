"""
skkserv: SKK Dictionary Server

A small SKK serv protocol server built with Python asyncio. Readings are
converted through a remote transliteration API and the answers are kept
in an expiring, file-backed cache.
"""

__version__ = "1.0.0"
