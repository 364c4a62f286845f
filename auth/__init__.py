"""auth/ -- Directory login, session tokens and session records for the Content API.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or content/.
api/ imports from auth/, not the other way around.
"""
