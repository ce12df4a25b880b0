"""employees/ -- Employee records: domain dataclass and repository.

Layer rule: employees/ imports only stdlib, third-party libraries, and core/.
"""
