"""
IAP Transactions - fetch and normalize in-app-purchase transaction records.
"""

__version__ = "0.1.0"
