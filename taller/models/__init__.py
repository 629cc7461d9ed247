# taller/models/__init__.py
from .material import MateriaPrima, MovimientoMp, TipoMovimiento
from .usage import MaterialUtilizado, TipoDocumento
from .herramienta import Herramienta, HerramientaEstatus
from .reparacion import Reparacion, ReparacionEstado, Prioridad, HistorialReparacion
from .pedido import Pedido, PedidoProducto, PedidoEtapa, Venta

__all__ = [
    "MateriaPrima",
    "MovimientoMp",
    "TipoMovimiento",
    "MaterialUtilizado",
    "TipoDocumento",
    "Herramienta",
    "HerramientaEstatus",
    "Reparacion",
    "ReparacionEstado",
    "Prioridad",
    "HistorialReparacion",
    "Pedido",
    "PedidoProducto",
    "PedidoEtapa",
    "Venta",
]
