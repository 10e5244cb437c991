"""
Reports module.

CSV exports of users, items and loan records for administrators.
"""
