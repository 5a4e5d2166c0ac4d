"""
Business rules. Every mutating operation takes the acting user, checks the
authorization policy first and commits exactly once.
"""
