"""notify/ -- Outbound email delivery for TaskPro.

Layer rule: notify/ imports only stdlib. auth/ and api/ depend on the
Notifier contract defined here, never on a concrete transport.
"""
