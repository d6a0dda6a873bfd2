"""Notifications app package.

Delivers guest notifications by email. Delivery runs in Celery tasks
triggered by domain events and never affects the outcome of the action
that raised the event.
"""
