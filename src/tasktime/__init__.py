# src/tasktime/__init__.py

"""Time-tracking sessions for tasks: start, stop and account elapsed time."""

__version__ = "0.1.0"
