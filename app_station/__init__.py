"""
app_station - Backend de gestión para un taller / estación de servicio.

POS, inventario, clientes y vehículos, empleados, facturación y reportes
servidos como API JSON con Flask (ver app_station.main).
"""

__version__ = '1.0.0'
