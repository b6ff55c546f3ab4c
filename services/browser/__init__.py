"""
Browser Service Package

Worker pool, automation engine adapter and proxy selection.
"""

from .engine import BrowserHandle, BrowserSession, BrowserPage, PlaywrightEngine
from .proxies import ProxyPool, ProxySettings, parse_proxy
from .worker_pool import WorkerPool, WorkerSlot, WorkerBuilder

__all__ = [
    'BrowserHandle',
    'BrowserSession',
    'BrowserPage',
    'PlaywrightEngine',
    'ProxyPool',
    'ProxySettings',
    'parse_proxy',
    'WorkerPool',
    'WorkerSlot',
    'WorkerBuilder',
]
