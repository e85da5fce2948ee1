"""
cert_bundle — inspect and edit PEM certificate bundle files.

Splits a bundle into its certificates, reports issuer, subject and
validity of each, and rewrites the bundle without the certificates an
operator selects (by position, issuer, subject or expiry), keeping the
original as a read-only backup.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
