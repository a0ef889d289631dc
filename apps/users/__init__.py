"""Users app package.

Defines the custom user model used as ``AUTH_USER_MODEL`` across the
project. Accounts log in with their email address and carry a role that
separates renters from equipment owners.
"""
