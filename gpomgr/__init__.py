"""
Group Policy Object retrieval and management.
"""

__version__ = "1.0.0"
