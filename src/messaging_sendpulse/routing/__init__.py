"""
SendPulse Routing

Destination normalization.
"""

from messaging_sendpulse.routing.phone import mask_phone, normalize_phone

__all__ = ["mask_phone", "normalize_phone"]
