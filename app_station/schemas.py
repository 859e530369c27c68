# ==============================================================================
# ESQUEMAS DE ENTRADA - Validación de los cuerpos JSON (pydantic)
# ==============================================================================
# Cada endpoint que recibe datos valida el body con uno de estos modelos.
# Los errores se aplanan a {campo: [mensajes]} en errors.field_errors().
#
# Los nombres de campo son los mismos camelCase que se guardan en la base.
# ==============================================================================

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from app_station.models import FuelType, ItemType, PaymentMethod, Transmission


class StationModel(BaseModel):
    """Configuración común: ignora campos extra y guarda enums como texto."""
    model_config = ConfigDict(
        extra='ignore',
        use_enum_values=True,
        str_strip_whitespace=True,
        validate_default=True,
        validate_assignment=True,
    )

    # campo -> campo que se revalida cuando el primero cambia
    dependent_fields: ClassVar[Dict[str, str]] = {}

    def to_doc(self) -> dict:
        """Diccionario listo para guardar (sin campos vacíos)."""
        return self.model_dump(exclude_none=True, mode='json')


def _required(value: Optional[str], message: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(message)
    return value


def validate_partial(
    schema_cls: Type[StationModel],
    existing: Dict[str, Any],
    fields: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Valida una actualización parcial.

    Solo se validan los campos enviados (tipo, rangos y reglas propias);
    los campos guardados no se revisan. Un campo que depende de otro
    (precio de venta >= costo) se vuelve a validar contra el documento
    mezclado aunque no venga en la petición. Un null explícito se conserva
    para poder limpiar campos opcionales.

    Args:
        schema_cls: Esquema del documento completo
        existing: Documento guardado
        fields: Campos a modificar

    Returns:
        Subconjunto validado de fields (vacío si ninguno es conocido)
    """
    known = [key for key in schema_cls.model_fields if key in fields]
    stored = {key: value for key, value in existing.items() if key in schema_cls.model_fields}
    doc = schema_cls.model_construct(**stored)

    # en orden de declaración: el costo se asigna antes que el precio de venta
    for key in known:
        setattr(doc, key, fields[key])
    for key in known:
        dependent = schema_cls.dependent_fields.get(key)
        if dependent and dependent not in fields:
            setattr(doc, dependent, getattr(doc, dependent))

    return doc.model_dump(mode='json', include=set(known))


# ==============================================================================
# CLIENTES, VEHÍCULOS Y EMPLEADOS
# ==============================================================================

class CustomerSchema(StationModel):
    name: str = ''
    phone: str = ''
    address: Optional[str] = None
    nic: Optional[str] = None

    @field_validator('name')
    @classmethod
    def _name(cls, v):
        return _required(v, 'El nombre completo es obligatorio')

    @field_validator('phone')
    @classmethod
    def _phone(cls, v):
        return _required(v, 'El teléfono es obligatorio')


class VehicleSchema(StationModel):
    """Vehículo: solo la placa es obligatoria."""
    numberPlate: str = ''
    customerId: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    mileage: Optional[int] = Field(default=None, ge=0)
    fuelType: Optional[FuelType] = None
    transmission: Optional[Transmission] = None
    lastVisit: Optional[int] = None

    @field_validator('numberPlate')
    @classmethod
    def _plate(cls, v):
        return _required(v, 'La placa del vehículo es obligatoria').upper()

    @field_validator('year')
    @classmethod
    def _year(cls, v):
        if v is not None and not (1900 <= v <= datetime.now().year + 1):
            raise ValueError('Año inválido')
        return v

    @field_validator('mileage', mode='before')
    @classmethod
    def _blank_mileage(cls, v):
        return None if v == '' else v


class VehicleFormSchema(VehicleSchema):
    """Vehículo registrado junto con su cliente: marca, modelo y año obligatorios."""
    make: str = ''
    model: str = ''
    year: int = 0

    @field_validator('make')
    @classmethod
    def _make(cls, v):
        return _required(v, 'La marca es obligatoria')

    @field_validator('model')
    @classmethod
    def _model(cls, v):
        return _required(v, 'El modelo es obligatorio')


class CustomerVehicleSchema(StationModel):
    """
    Alta (o edición) conjunta de cliente + vehículo.

    Si vienen customerId / vehicleId se actualizan esos documentos.
    """
    customer: CustomerSchema
    vehicle: VehicleFormSchema
    customerId: Optional[str] = None
    vehicleId: Optional[str] = None


class EmployeeSchema(StationModel):
    name: str = ''
    address: str = ''
    mobile: str = ''
    notes: Optional[str] = None

    @field_validator('name')
    @classmethod
    def _name(cls, v):
        return _required(v, 'El nombre es obligatorio')

    @field_validator('address')
    @classmethod
    def _address(cls, v):
        return _required(v, 'La dirección es obligatoria')

    @field_validator('mobile')
    @classmethod
    def _mobile(cls, v):
        return _required(v, 'El teléfono móvil es obligatorio')


# ==============================================================================
# INVENTARIO
# ==============================================================================

class ProductSchema(StationModel):
    name: str = ''
    sku: str = ''
    category: str = ''
    stock: int = Field(default=0, ge=0)
    stockThreshold: int = Field(default=0, ge=0)
    actualPrice: float = Field(default=0.0, ge=0)
    sellingPrice: float = Field(default=0.0, ge=0)

    dependent_fields: ClassVar[Dict[str, str]] = {'actualPrice': 'sellingPrice'}

    @field_validator('name')
    @classmethod
    def _name(cls, v):
        return _required(v, 'El nombre es obligatorio')

    @field_validator('sku')
    @classmethod
    def _sku(cls, v):
        return _required(v, 'El SKU es obligatorio')

    @field_validator('category')
    @classmethod
    def _category(cls, v):
        return _required(v, 'La categoría es obligatoria')

    @field_validator('sellingPrice')
    @classmethod
    def _selling_over_cost(cls, v, info: ValidationInfo):
        cost = info.data.get('actualPrice')
        if cost is not None and v < cost:
            raise ValueError('El precio de venta no puede ser menor al costo')
        return v


class ServiceSchema(StationModel):
    name: str = ''
    description: Optional[str] = None
    price: float = Field(default=0.0, ge=0)
    vehicleCategory: str = ''

    @field_validator('name')
    @classmethod
    def _name(cls, v):
        return _required(v, 'El nombre es obligatorio')

    @field_validator('vehicleCategory')
    @classmethod
    def _category(cls, v):
        return _required(v, 'La categoría de vehículo es obligatoria')


class AddStockSchema(StationModel):
    productId: str = Field(min_length=1)
    quantity: int = Field(gt=0)


class AdjustStockSchema(StationModel):
    productId: str = Field(min_length=1)
    action: Literal['decrement', 'delete']
    quantity: Optional[int] = None
    reason: str = Field(min_length=10)


# ==============================================================================
# FACTURAS Y PAGOS
# ==============================================================================

class PaymentSchema(StationModel):
    id: Optional[str] = None
    method: str
    amount: float = Field(gt=0)
    chequeNumber: Optional[str] = None
    bank: Optional[str] = None

    @field_validator('method')
    @classmethod
    def _method(cls, v):
        try:
            return PaymentMethod.normalize(v)
        except ValueError:
            raise ValueError('Método de pago inválido (Cash, Card o Cheque)')


class InvoiceItemSchema(StationModel):
    itemId: str
    name: str
    quantity: int = Field(gt=0)
    unitPrice: float = Field(ge=0)
    discount: float = 0.0
    total: float
    buyPrice: Optional[float] = None
    type: Optional[ItemType] = None


class InvoiceSchema(StationModel):
    """
    Factura completa enviada por el POS.

    paymentStatus, amountPaid, balanceDue y changeGiven se recalculan en el
    servicio a partir de payments y total.
    """
    invoiceNumber: str = Field(min_length=1)
    customerId: str = Field(min_length=1)
    vehicleId: str = Field(min_length=1)
    employeeId: str = Field(min_length=1)
    date: int
    items: List[InvoiceItemSchema] = Field(min_length=1)
    subtotal: float
    globalDiscountPercent: float = 0.0
    globalDiscountAmount: float = 0.0
    total: float
    payments: List[PaymentSchema] = Field(default_factory=list)
    paymentStatus: Optional[Literal['Paid', 'Partial', 'Unpaid']] = None
    amountPaid: Optional[float] = None
    balanceDue: Optional[float] = None
    changeGiven: Optional[float] = None
    status: Optional[str] = None


class AddPaymentSchema(StationModel):
    invoiceId: str = Field(min_length=1)
    newPayments: List[PaymentSchema] = Field(min_length=1)


# ==============================================================================
# CARRITO DEL POS
# ==============================================================================

class CartAddSchema(StationModel):
    """
    Línea nueva del carrito.

    product/service se buscan por itemId en el catálogo; custom requiere
    name y unitPrice.
    """
    type: ItemType
    itemId: Optional[str] = None
    name: Optional[str] = None
    unitPrice: Optional[float] = Field(default=None, ge=0)
    quantity: int = Field(default=1, ge=1)
    discountAmount: float = Field(default=0.0, ge=0)

    @model_validator(mode='after')
    def _check_source(self):
        if self.type == ItemType.CUSTOM.value:
            if not self.name or self.unitPrice is None:
                raise ValueError('Los trabajos personalizados requieren nombre y precio')
        elif not self.itemId:
            raise ValueError('itemId es obligatorio para productos y servicios')
        return self


class CartUpdateSchema(StationModel):
    cartId: str = Field(min_length=1)
    quantity: Optional[int] = None
    discountAmount: Optional[float] = Field(default=None, ge=0)
    name: Optional[str] = None
    unitPrice: Optional[float] = Field(default=None, ge=0)


class CartRemoveSchema(StationModel):
    cartId: str = Field(min_length=1)


class CartDiscountSchema(StationModel):
    percent: float


class CheckoutSchema(StationModel):
    customerId: str = Field(min_length=1)
    vehicleId: str = Field(min_length=1)
    employeeId: str = Field(min_length=1)
    payments: List[PaymentSchema] = Field(default_factory=list)
