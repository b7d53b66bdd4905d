"""Business logic for the upload lifecycle.

Views and admin call into this package; models never call back into it.
"""
