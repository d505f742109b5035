from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import relationship

from app.database import Base


class Provincia(Base):
    __tablename__ = "provincias"

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(120), unique=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    municipios = relationship("Municipio", back_populates="provincia")


class Municipio(Base):
    __tablename__ = "municipios"
    __table_args__ = (UniqueConstraint("provincia_id", "nombre", name="uq_municipio_provincia_nombre"),)

    id = Column(Integer, primary_key=True, index=True)
    provincia_id = Column(Integer, ForeignKey("provincias.id", ondelete="CASCADE"), nullable=False, index=True)
    nombre = Column(String(120), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    provincia = relationship("Provincia", back_populates="municipios")
