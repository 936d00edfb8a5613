"""
Condition trees, their evaluation, and the operation registration table.
"""
