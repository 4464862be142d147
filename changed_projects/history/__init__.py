"""History query backends for different version-control tools."""

from .factory import create_history_query
from .interface import HistoryQuery, QueryResult
from .git_history import GitHistory

__all__ = ['create_history_query', 'HistoryQuery', 'QueryResult', 'GitHistory']
