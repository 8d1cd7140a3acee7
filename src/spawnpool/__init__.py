"""
SpawnPool - warm pools of pre-launched processes
"""

__version__ = "0.1.0"
