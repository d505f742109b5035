from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from app.database import Base


ROLES = ("admin", "trabajador")


class Usuario(Base):
    __tablename__ = "usuarios"

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(120), nullable=False)
    apellidos = Column(String(160))
    username = Column(String(120), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, index=True)
    password_hash = Column(String(512), nullable=False)
    rol = Column(String(20), nullable=False, default="trabajador")
    telefono_e164 = Column(String(20))
    municipio_id = Column(Integer, ForeignKey("municipios.id", ondelete="SET NULL"))
    avatar_url = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime)

    configuracion = relationship("ConfiguracionUsuario", back_populates="usuario", uselist=False)
    municipio = relationship("Municipio")

    @property
    def is_admin(self) -> bool:
        return self.rol == "admin"
