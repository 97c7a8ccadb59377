"""
lessonslots - availability and time-slot engine for peer-to-peer lesson booking.
"""

__version__ = "0.1.0"
