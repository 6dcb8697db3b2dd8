"""
HTTP API for the task scheduler.
"""
