"""
Appointment slot computation and double-booking prevention for salon bookings.
"""

__version__ = "0.1.0"
