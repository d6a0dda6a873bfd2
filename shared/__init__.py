"""
Shared Kernel

Base classes and infrastructure helpers shared by the inventory,
bookings and notifications apps.
"""
