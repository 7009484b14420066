"""
TrustLedger core.

Two-phase peer-to-peer transaction registry and multi-level referral
commission engine.
"""

__version__ = "0.1.0"
