"""
passdeck — Proton Pass launcher core.

Wraps the external ``pass-cli`` tool: process invocation, output
normalization, a short-lived list cache and the TOTP refresh cycle.
"""

__version__ = "0.1.0"
