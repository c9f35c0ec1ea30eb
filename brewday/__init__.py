"""
Brew Day - recipe calculator and brew-day timeline generator.
"""

__version__ = "0.1.0"
