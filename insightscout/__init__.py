"""
InsightScout - founder and contact research for company lists
"""

__version__ = "1.0.0"
