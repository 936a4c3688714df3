"""
Upstream clients and the chunked translation dispatcher.

Clients:
    - mymemory: MyMemory `/get` translation endpoint
    - dictionary: dictionaryapi.dev word lookup
"""
from .base import UpstreamClient
from .mymemory import MyMemoryClient
from .dictionary import DictionaryClient
from .dispatcher import TranslationDispatcher

__all__ = ['UpstreamClient', 'MyMemoryClient', 'DictionaryClient', 'TranslationDispatcher']
