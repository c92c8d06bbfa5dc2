"""
Ad Service

Ad serving and campaign lifecycle engine providing:
- Slot resolution and weighted ad rotation
- Duration-based pricing
- Campaign lifecycle gated on payment, time and authorization
- Atomic impression and click tracking
- Per-campaign and per-advertiser analytics
"""

__version__ = "1.0.0"
__service__ = "ad_service"
