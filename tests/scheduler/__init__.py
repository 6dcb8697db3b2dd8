"""
Scheduler test package.
"""
