"""Equipment app package.

Holds the listings that owners publish on the marketplace. Bookings
reference an equipment item and the item's owner is the only user allowed
to decide on incoming rental requests.
"""
