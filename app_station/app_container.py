# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Este módulo proporciona una forma centralizada de obtener instancias
# del almacén de datos y de los servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (se apunta el contenedor a una carpeta temporal)
#   - Cambio de backend (JSON ↔ MongoDB) sin tocar servicios ni rutas
#
# ═══════════════════════════════════════════════════════════════════════════════
# BACKEND DE DATOS
# ═══════════════════════════════════════════════════════════════════════════════
#
#   STATION_DB_BACKEND=json   → un archivo <colección>.json por colección
#                               dentro de base_path (o STATION_DATA_DIR)
#   STATION_DB_BACKEND=mongo  → MongoDB (MONGODB_URI + MONGODB_DB_NAME)
#
# Los servicios solo conocen Database, que a su vez solo usa la interfaz
# IDocumentStore.
# ==============================================================================

from typing import Optional

from app_station import config
from app_station.repositories import Database, IDocumentStore, JsonDocumentStore
from app_station.services import (
    CartService,
    CustomerService,
    DashboardService,
    EmployeeService,
    InventoryService,
    InvoiceService,
    ReportService,
    StockLogService,
)


def _build_store(base_path: str, backend: str) -> IDocumentStore:
    """Crea el almacén según el backend configurado."""
    if backend == 'mongo':
        # Import diferido: pymongo solo se carga con el backend mongo
        from app_station.repositories.mongo_store import MongoDocumentStore
        return MongoDocumentStore(config.MONGODB_URI, config.MONGODB_DB_NAME)
    if backend != 'json':
        print(f"[ADVERTENCIA] Backend '{backend}' desconocido, usando JSON")
    return JsonDocumentStore(base_path)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Implementa el patrón Singleton para asegurar una única instancia
    de cada servicio.

    Uso:
        container = AppContainer(base_path='/path/to/data')
        invoice_service = container.invoice_service
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, base_path: str = None, backend: str = None):
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, base_path: str = None, backend: str = None):
        """
        Inicializa el contenedor.

        Args:
            base_path: Carpeta de datos del backend JSON
            backend: 'json' o 'mongo' (por defecto config.DB_BACKEND)
        """
        if self._initialized:
            return

        self._base_path = base_path or config.DATA_DIR
        self._backend = (backend or config.DB_BACKEND).lower()

        # Inicialización lazy
        self._db: Optional[Database] = None
        self._stock_log_service: Optional[StockLogService] = None
        self._customer_service: Optional[CustomerService] = None
        self._employee_service: Optional[EmployeeService] = None
        self._inventory_service: Optional[InventoryService] = None
        self._invoice_service: Optional[InvoiceService] = None
        self._cart_service: Optional[CartService] = None
        self._report_service: Optional[ReportService] = None
        self._dashboard_service: Optional[DashboardService] = None

        self._initialized = True

    # =========================================================================
    # DATOS
    # =========================================================================

    @property
    def db(self) -> Database:
        """Fachada de datos (singleton)."""
        if self._db is None:
            self._db = Database(_build_store(self._base_path, self._backend))
        return self._db

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def stock_log_service(self) -> StockLogService:
        if self._stock_log_service is None:
            self._stock_log_service = StockLogService(self.db)
        return self._stock_log_service

    @property
    def customer_service(self) -> CustomerService:
        if self._customer_service is None:
            self._customer_service = CustomerService(self.db)
        return self._customer_service

    @property
    def employee_service(self) -> EmployeeService:
        if self._employee_service is None:
            self._employee_service = EmployeeService(self.db)
        return self._employee_service

    @property
    def inventory_service(self) -> InventoryService:
        """Servicio de inventario (singleton)."""
        if self._inventory_service is None:
            self._inventory_service = InventoryService(self.db, self.stock_log_service)
        return self._inventory_service

    @property
    def invoice_service(self) -> InvoiceService:
        """Servicio de facturas (singleton)."""
        if self._invoice_service is None:
            self._invoice_service = InvoiceService(self.db)
        return self._invoice_service

    @property
    def cart_service(self) -> CartService:
        """Servicio de carrito (singleton)."""
        if self._cart_service is None:
            self._cart_service = CartService(self.inventory_service, self.invoice_service)
        return self._cart_service

    @property
    def report_service(self) -> ReportService:
        """Servicio de reportes (singleton)."""
        if self._report_service is None:
            self._report_service = ReportService(self.db, self.stock_log_service)
        return self._report_service

    @property
    def dashboard_service(self) -> DashboardService:
        if self._dashboard_service is None:
            self._dashboard_service = DashboardService(self.db)
        return self._dashboard_service

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """
        Reinicia todas las instancias.
        Útil para testing o para recargar datos.
        """
        self._db = None
        self._stock_log_service = None
        self._customer_service = None
        self._employee_service = None
        self._inventory_service = None
        self._invoice_service = None
        self._cart_service = None
        self._report_service = None
        self._dashboard_service = None

    @classmethod
    def get_instance(cls, base_path: str = None) -> 'AppContainer':
        """
        Obtiene la instancia singleton del contenedor.

        Args:
            base_path: Ruta de datos (solo se usa en primera llamada)
        """
        if cls._instance is None:
            return cls(base_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


def get_container(base_path: str = None) -> AppContainer:
    """
    Obtiene el contenedor global de dependencias.

    Args:
        base_path: Ruta de datos (opcional, solo en primera llamada)

    Returns:
        Instancia de AppContainer
    """
    return AppContainer.get_instance(base_path)
