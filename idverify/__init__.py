"""
Identity verification orchestration service.

Confirms that a phone number or email address is reachable by the requester
through one-time codes, OAuth redirects, or silent carrier number verification.
"""

__version__ = "0.1.0"
