"""
jobkeeper - group/name addressed job management on top of a scheduling engine.
"""

__version__ = "1.0.0"
