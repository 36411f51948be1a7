"""Course Platform - REST backend for a learning-management site.

Core concepts:
- Users sign in with email or username and receive a stateless JWT.
- Two trust levels only: normal users and administrators.
- Every list endpoint shares one pagination / filtering pattern.
- Every response (success or failure) uses the same JSON envelope.

See DESIGN.md for how the pieces fit together.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
