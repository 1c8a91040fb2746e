"""State layer.

This package is the single owner of a tracking session's state: candidate
samples from push and poll are merged here into one displayed position.
"""
