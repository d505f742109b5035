from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.database import Base


ESTADOS = ("borrador", "publicado", "archivado")
JORNADAS = ("tiempo_completo", "tiempo_parcial", "por_turnos")
MODOS = ("presencial", "remoto", "hibrido")
TIPOS_CONTACTO = ("telefono", "whatsapp", "email", "sitio_web")


class Trabajo(Base):
    __tablename__ = "trabajos"
    __table_args__ = (
        Index("idx_trabajo_estado", "estado"),
        Index("idx_trabajo_autor", "autor_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    autor_id = Column(Integer, ForeignKey("usuarios.id", ondelete="CASCADE"), nullable=False)
    titulo = Column(String(255), nullable=False)
    descripcion = Column(Text)
    experiencia_min = Column(Integer)
    jornada = Column(String(30), nullable=False, default="tiempo_completo")
    modo = Column(String(30), nullable=False, default="presencial")
    salario_min = Column(Integer)
    salario_max = Column(Integer)
    municipio_id = Column(Integer, ForeignKey("municipios.id", ondelete="SET NULL"))
    estado = Column(String(20), nullable=False, default="borrador")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime)

    autor = relationship("Usuario")
    municipio = relationship("Municipio")
    contactos = relationship(
        "TrabajoContacto",
        back_populates="trabajo",
        cascade="all, delete-orphan",
        order_by="TrabajoContacto.created_at",
    )


class TrabajoContacto(Base):
    __tablename__ = "trabajo_contactos"

    trabajo_id = Column(Integer, ForeignKey("trabajos.id", ondelete="CASCADE"), primary_key=True)
    tipo = Column(String(20), primary_key=True)
    valor = Column(String(255), primary_key=True)
    created_at = Column(DateTime, server_default=func.now())

    trabajo = relationship("Trabajo", back_populates="contactos")
