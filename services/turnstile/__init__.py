"""
Turnstile Solving Service Package

Provides the asynchronous solve pipeline:
1. Dispatcher - accepts requests, hands out task ids
2. TaskRunner - drives one browser through the challenge
3. ResultStore - durable task id -> result map
"""

from .dispatcher import Dispatcher
from .models import (
    SolveTask,
    TaskResult,
    PendingResult,
    SuccessResult,
    FailureResult,
)
from .runner import TaskRunner
from .store import ResultStore

__all__ = [
    'Dispatcher',
    'SolveTask',
    'TaskResult',
    'PendingResult',
    'SuccessResult',
    'FailureResult',
    'TaskRunner',
    'ResultStore',
]
