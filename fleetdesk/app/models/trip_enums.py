"""
Trip-related enumerations.
"""

import enum


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    ACTIVE = "active"  # Started with start evidence, vehicle on the road
    COMPLETED = "completed"  # Ended with end evidence; terminal
