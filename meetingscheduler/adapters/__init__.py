"""
Adapters layer - Schedule data sources (JSON file, REST API).
"""

from .http_repository import HttpScheduleRepository
from .json_repository import JsonScheduleRepository

__all__ = ["HttpScheduleRepository", "JsonScheduleRepository"]
