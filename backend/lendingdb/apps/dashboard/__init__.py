"""
Dashboard module.

Read-only counts and recent activity derived from items, loans and users.
"""
