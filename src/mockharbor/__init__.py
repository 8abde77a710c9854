"""
MockHarbor - deterministic, configurable fake HTTP servers for tests.
"""

__version__ = '1.0.0'
