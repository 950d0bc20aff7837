"""Bid tracking sync pipeline over a spreadsheet system of record."""

__version__ = "0.1.0"
