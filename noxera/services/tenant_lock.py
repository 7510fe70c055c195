"""
Tenant row lock shared by the role, branch and user services.
"""

from sqlalchemy.orm import Session

from noxera.errors import NotFoundError
from noxera.models import Tenant


def lock_tenant(db: Session, tenant_id: str) -> None:
    """
    Bump the tenant's lock_version inside the current transaction.

    Must be the first write of an invariant-guarded mutation: the UPDATE
    takes the tenant row lock (write lock on SQLite), so concurrent
    mutations of the same tenant run one after the other and each sees
    the previous one's commit.

    Raises:
        NotFoundError: If the tenant does not exist
    """
    updated = (
        db.query(Tenant)
        .filter(Tenant.id == tenant_id)
        .update({Tenant.lock_version: Tenant.lock_version + 1}, synchronize_session=False)
    )
    if not updated:
        raise NotFoundError("Tenant not found.")

