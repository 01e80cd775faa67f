"""Estimate Inbox - HTTP functions.

This package contains the Python functions behind the "request an estimate"
form and the owner's admin inbox.

Architecture:
- Intake: validate, price and store a submission, then text the owner
- Review: list, mark read and delete stored estimates
- Store: JSON snapshot with an in-memory working copy
"""

__version__ = "1.0.0"
