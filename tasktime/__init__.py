"""tasktime - personal task and time tracking backend"""

__version__ = "0.1.0"
