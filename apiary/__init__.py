"""apiary/ -- Hive records owned by accounts.

Layer rule: apiary/ imports only core/, stdlib and third-party libraries.
Owner existence checks are done by the API layer, which sees both apiary/
and auth/.
"""
