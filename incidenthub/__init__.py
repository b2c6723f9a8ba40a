"""Incident Hub.

Citizen incident reports, operator alerts and an external hazard event feed
merged into one view of what is happening near a location.
"""

__version__ = "1.0.0"
