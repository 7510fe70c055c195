"""
Impersonation Revocation Model

Impersonation grants are self-contained signed tokens. Stopping one records
its token id here so that validation rejects it before natural expiry.
Rows past expires_at are safe to prune.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from noxera.database import Base
from noxera.utils import utcnow


class ImpersonationRevocation(Base):
    """Revoked impersonation token id"""

    __tablename__ = "impersonation_revocations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    jti = Column(String(64), nullable=False, unique=True)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False)
    revoked_by = Column(String(255), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<ImpersonationRevocation(jti='{self.jti}', tenant_id={self.tenant_id})>"
