"""
Small utilities shared by the engines.
"""
from .logging import get_logger
