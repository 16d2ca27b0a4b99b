from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import Enum as SQLEnum
from db import Base
from core.roles import UserRole


class Profile(Base):
    __tablename__ = "profiles"

    # id видає зовнішній провайдер автентифікації (claim "sub")
    id = Column(String, primary_key=True, index=True)
    full_name = Column(String, nullable=False, default="Anonymous")
    email = Column(String, nullable=True)
    role = Column(
        SQLEnum(UserRole, values_callable=lambda obj: [e.value for e in obj]),
        default=UserRole.USER,
        nullable=False
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    boxes = relationship("Box", back_populates="owner")
