from app.models.configuracion_usuario import ConfiguracionUsuario
from app.models.guardado import Guardado
from app.models.log import Log
from app.models.publicacion import Publicacion
from app.models.trabajo import Trabajo, TrabajoContacto
from app.models.ubicacion import Municipio, Provincia
from app.models.usuario import Usuario

__all__ = [
    "ConfiguracionUsuario",
    "Guardado",
    "Log",
    "Municipio",
    "Provincia",
    "Publicacion",
    "Trabajo",
    "TrabajoContacto",
    "Usuario",
]
