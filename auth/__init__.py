"""auth/ -- Authentication package for StaffLedger.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or employees/.
api/ imports from auth/, not the other way around.
"""
