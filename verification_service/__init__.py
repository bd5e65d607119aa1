"""
Verification Service
QR ticket validation and per-day entitlement check-in at venue gates.
"""
