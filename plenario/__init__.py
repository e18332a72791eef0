"""
Plenario - cached acquisition and enrichment of Brazilian legislative open data
"""

__version__ = "1.0.0"
