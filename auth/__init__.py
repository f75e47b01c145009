"""auth/ -- Credentials and session tokens for TaskPro.

Layer rule: auth/ imports stdlib, third-party libraries, and the Notifier
contract from notify/. It does NOT import from api/ or core/.
api/ imports from auth/, not the other way around.
"""
