from __future__ import annotations

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.database import Base


class Log(Base):
    """Audit trail row: who did what to which entity, and from where."""

    __tablename__ = "logs"
    __table_args__ = (Index("idx_log_created", "created_at"),)

    id = Column(Integer, primary_key=True, index=True)
    usuario_id = Column(Integer, ForeignKey("usuarios.id", ondelete="SET NULL"))
    accion = Column(Text, nullable=False)
    entidad = Column(String(50))
    entidad_id = Column(Integer)
    detalles = Column(JSON)
    ip = Column(String(45))
    user_agent = Column(Text)
    created_at = Column(DateTime, server_default=func.now())

    usuario = relationship("Usuario")
