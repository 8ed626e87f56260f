"""
Meeting scheduler - availability engine for rooms and attendees.
"""

__version__ = "0.1.0"
