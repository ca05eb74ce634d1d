"""registry/ -- Organizations and attendees: dataclasses, store, creator resolution.

Layer rule: registry/ imports only stdlib, third-party libraries, and core/.
"""
