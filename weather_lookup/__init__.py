"""
Weather lookup: a city weather widget and the serverless gateway it calls.
"""

__version__ = "1.0.0"
