"""
Shift Roster Grid Synchronisation

Keeps an employee shift roster laid out as a spreadsheet grid consistent with
a normalized assignment log, and imports availability surveys into the roster.
"""

__version__ = "1.0.0"
__author__ = "Shift Roster Team"
