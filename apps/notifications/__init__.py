"""Notifications app package.

Transactional emails sent to renters and owners when a booking request is
created, decided on, rescheduled or when a rental starts and ends. Delivery
happens from Celery tasks so that request handling never waits on SMTP.
"""
