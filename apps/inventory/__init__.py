"""Inventory app package.

Bookable resources (lodging, group departures, individual tours), their
daily start times and operator blocks, plus the read side that turns
committed demand into per-day availability.
"""
