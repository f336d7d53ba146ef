"""
Utilities Module

Result cache, configuration and landmark CSV helpers used across meshwarp.
"""

from .cache import ResultCache
from .config import ConfigManager, get_config, reset_config
from .landmarks_csv import Landmark, read_landmarks_csv, write_landmarks_csv, write_paired_landmarks_csv

__all__ = [
    'ResultCache',
    'ConfigManager',
    'get_config',
    'reset_config',
    'Landmark',
    'read_landmarks_csv',
    'write_landmarks_csv',
    'write_paired_landmarks_csv'
]
