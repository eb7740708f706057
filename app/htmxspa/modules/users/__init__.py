"""
Users module (read-only): list, search and detail fragments over the seeded users table.
"""
