from sqlalchemy import Column, String, DateTime, Uuid
import uuid
from datetime import datetime
from voluntold.db.session import Base


class Tenant(Base):
    """An organization using Voluntold (club, church, community group)."""
    __tablename__ = "tenants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)  # URL-safe identifier
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
