"""Bookings app package.

This app encapsulates the booking domain: the booking model, the date
overlap validation consulted when a request is made and when an owner
approves it, and the owner/renter workflow built on top of it. Writes that
occupy the calendar re-check availability inside a transaction holding a
lock on the equipment row.
"""
