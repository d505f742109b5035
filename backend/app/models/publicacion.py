from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.database import Base


class Publicacion(Base):
    __tablename__ = "publicaciones"
    __table_args__ = (
        Index("idx_publicacion_autor_estado", "autor_id", "estado"),
        Index("idx_publicado_en", "publicado_en"),
    )

    id = Column(Integer, primary_key=True, index=True)
    trabajo_id = Column(Integer, ForeignKey("trabajos.id", ondelete="CASCADE"), nullable=False, index=True)
    autor_id = Column(Integer, ForeignKey("usuarios.id", ondelete="CASCADE"), nullable=False)
    estado = Column(String(20), nullable=False, default="publicado")
    publicado_en = Column(DateTime, server_default=func.now())
    imagen_url = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    trabajo = relationship("Trabajo")
    autor = relationship("Usuario")
