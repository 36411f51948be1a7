"""Authentication / authorization helpers.

Auth is intentionally lightweight:

- Users table (email + username, password hash, role 0 = normal / 100 = administrator)
- Stateless JWT access tokens, valid for 30 days, sent in a `token` request header

Two FastAPI dependencies guard routes:

- `require_user`: token must verify; attaches the user id only.
- `require_admin`: additionally loads the user and requires the administrator role.

Failures raise UnauthorizedError subclasses; the response envelope turns them
into a single 401 body and the route handler never runs.
"""

from .deps import Principal, require_admin, require_user
from .crud import bootstrap_admin_if_needed, create_user

__all__ = [
    "Principal",
    "require_user",
    "require_admin",
    "bootstrap_admin_if_needed",
    "create_user",
]
