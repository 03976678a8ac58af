"""
Football season simulator: many leagues playing continuous double round-robin
seasons in compressed real time, with live tables and a pushed event stream.
"""

__version__ = "0.1.0"
