"""auth/ -- Credential authentication and account lifecycle for SmartBee.

Layer rule: auth/ imports only core/, stdlib and third-party libraries.
It does NOT import from api/ or apiary/.
api/ imports from auth/, not the other way around.
"""
