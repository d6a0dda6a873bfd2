"""Bookings app package.

This app encapsulates the demand lifecycle: holding capacity for a stay,
a group departure or an individual time slot, confirming and completing
it, and cancelling it with a tiered refund. Concurrent creations for the
same date and slot are serialized through row locks on capacity pools.
"""
