"""auth/ -- Authentication and authorization package for confreg.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/, registry/, or notify/.
api/ imports from auth/, not the other way around.
"""
