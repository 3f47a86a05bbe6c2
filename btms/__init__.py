"""
Banking Transaction Management System

A single-user account book kept in a flat binary file of fixed-size
records, with deposits, withdrawals, two-leg transfers and deletions
applied by rewriting the file.
"""

__version__ = "1.0.0"
