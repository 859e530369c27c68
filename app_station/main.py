import os
from functools import wraps

from flask import Flask, jsonify, request
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from app_station import config
from app_station.errors import StationError, ValidationFailed, field_errors

# Sistema de profiling y log de errores
from app_station.performance_logger import init_profiling, log_error

# ═══════════════════════════════════════════════════════════════════════════
# CONTENEDOR DE DEPENDENCIAS - Servicios y Repositorios
# ═══════════════════════════════════════════════════════════════════════════
# Las rutas solo leen el request, llaman al servicio y devuelven JSON.
# La lógica de negocio vive en services/. get_container() se llama en cada
# request para que los tests puedan reiniciar el contenedor.
# ═══════════════════════════════════════════════════════════════════════════
from app_station.app_container import get_container

app = Flask(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# CLAVE SECRETA (sesión del carrito del POS)
# ═══════════════════════════════════════════════════════════════════════════
app.secret_key = config.SECRET_KEY
if config.PRODUCTION_MODE and not os.environ.get('STATION_SECRET_KEY'):
    print("[ADVERTENCIA] STATION_SECRET_KEY no está configurada en modo producción")

# ═══════════════════════════════════════════════════════════════════════════
# INICIALIZAR SISTEMA DE PROFILING
# ═══════════════════════════════════════════════════════════════════════════
# Mide rendimiento de rutas y funciones. Logs en config.LOGS_DIR
init_profiling(app)


@app.after_request
def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
    # HSTS solo con HTTPS real
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


# ═══════════════════════════════════════════════════════════════════════════
# HELPERS DE RUTAS
# ═══════════════════════════════════════════════════════════════════════════

def api_errors(fallback):
    """
    Convierte excepciones en respuestas JSON {"error": ...}.

    - StationError y subclases → su código HTTP
    - ValidationError de pydantic → 400 con errores por campo
    - HTTPException de werkzeug → la maneja Flask
    - Cualquier otra → se registra en errors.log y responde 500 con fallback
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except StationError as e:
                if e.status_code >= 500:
                    log_error(f"{request.method} {request.path}", e)
                return e.to_dict(), e.status_code
            except ValidationError as e:
                return {"error": field_errors(e)}, 400
            except HTTPException:
                raise
            except Exception as e:
                log_error(f"{request.method} {request.path}", e)
                return {"error": fallback}, 500
        return wrapper
    return decorator


def json_body():
    """Body JSON del request como dict (400 si no es un objeto)."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationFailed("Payload inválido")
    return data


def split_id(data, key="id"):
    """Separa el id del resto de campos: {id, ...} → (id, {...})."""
    fields = dict(data)
    return fields.pop(key, None), fields


# ═══════════════════════════════════════════════════════════════════════════
# CLIENTES
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/api/customers", methods=["GET"])
@api_errors("No se pudieron obtener los clientes")
def api_customers_list():
    return jsonify(get_container().customer_service.list_customers())


@app.route("/api/customers", methods=["POST"])
@api_errors("No se pudo crear el cliente")
def api_customers_create():
    return get_container().customer_service.create_customer(json_body()), 201


@app.route("/api/customers", methods=["PUT"])
@api_errors("No se pudo actualizar el cliente")
def api_customers_update():
    doc_id, fields = split_id(json_body())
    return get_container().customer_service.update_customer(doc_id, fields)


@app.route("/api/customers", methods=["DELETE"])
@api_errors("No se pudo eliminar el cliente")
def api_customers_delete():
    return get_container().customer_service.delete_customer(request.args.get("id"))


@app.route("/api/customers/overview", methods=["GET"])
@api_errors("No se pudieron obtener los clientes")
def api_customers_overview():
    """Clientes con sus vehículos, filtrables con ?q="""
    rows = get_container().customer_service.customers_overview(request.args.get("q", ""))
    return jsonify(rows)


# ═══════════════════════════════════════════════════════════════════════════
# VEHÍCULOS
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/api/vehicles", methods=["GET"])
@api_errors("No se pudieron obtener los vehículos")
def api_vehicles_list():
    return jsonify(get_container().customer_service.list_vehicles())


@app.route("/api/vehicles", methods=["POST"])
@api_errors("No se pudo registrar el vehículo")
def api_vehicles_create():
    return get_container().customer_service.create_vehicle(json_body()), 201


@app.route("/api/vehicles", methods=["PUT"])
@api_errors("No se pudo actualizar el vehículo")
def api_vehicles_update():
    doc_id, fields = split_id(json_body())
    return get_container().customer_service.update_vehicle(doc_id, fields)


@app.route("/api/vehicles", methods=["DELETE"])
@api_errors("No se pudo eliminar el vehículo")
def api_vehicles_delete():
    return get_container().customer_service.delete_vehicle(request.args.get("id"))


@app.route("/api/vehicles/search", methods=["GET"])
@api_errors("No se pudo buscar el vehículo")
def api_vehicles_search():
    """Búsqueda por prefijo de placa (?query=)"""
    return jsonify(get_container().customer_service.search_vehicles(request.args.get("query")))


@app.route("/api/customers-vehicles", methods=["GET"])
@api_errors("No se pudieron obtener clientes y vehículos")
def api_customers_vehicles_list():
    return jsonify(get_container().customer_service.customers_with_vehicles())


@app.route("/api/customers-vehicles", methods=["POST"])
@api_errors("No se pudo guardar el cliente con su vehículo")
def api_customers_vehicles_save():
    return get_container().customer_service.save_customer_vehicle(json_body()), 201


# ═══════════════════════════════════════════════════════════════════════════
# EMPLEADOS
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/api/employees", methods=["GET"])
@api_errors("No se pudieron obtener los empleados")
def api_employees_list():
    return jsonify(get_container().employee_service.list_employees())


@app.route("/api/employees", methods=["POST"])
@api_errors("No se pudo crear el empleado")
def api_employees_create():
    return get_container().employee_service.create_employee(json_body()), 201


@app.route("/api/employees", methods=["PUT"])
@api_errors("No se pudo actualizar el empleado")
def api_employees_update():
    doc_id, fields = split_id(json_body())
    return get_container().employee_service.update_employee(doc_id, fields)


@app.route("/api/employees", methods=["DELETE"])
@api_errors("No se pudo eliminar el empleado")
def api_employees_delete():
    return get_container().employee_service.delete_employee(request.args.get("id"))


# ═══════════════════════════════════════════════════════════════════════════
# PRODUCTOS Y STOCK
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/api/products", methods=["GET"])
@api_errors("No se pudieron obtener los productos")
def api_products_list():
    return jsonify(get_container().inventory_service.list_products())


@app.route("/api/products", methods=["POST"])
@api_errors("No se pudo crear el producto")
def api_products_create():
    return get_container().inventory_service.create_product(json_body()), 201


@app.route("/api/products", methods=["PUT"])
@api_errors("No se pudo actualizar el producto")
def api_products_update():
    """Actualización parcial: {id, ...campos}"""
    doc_id, fields = split_id(json_body())
    return get_container().inventory_service.update_product(doc_id, fields)


@app.route("/api/products", methods=["DELETE"])
@api_errors("No se pudo eliminar el producto")
def api_products_delete():
    return get_container().inventory_service.delete_product(request.args.get("id"))


@app.route("/api/products/low-stock", methods=["GET"])
@api_errors("No se pudo obtener el stock bajo")
def api_products_low_stock():
    return jsonify(get_container().inventory_service.low_stock_products())


@app.route("/api/products/add-stock", methods=["POST"])
@api_errors("No se pudo actualizar el stock")
def api_products_add_stock():
    return get_container().inventory_service.add_stock(json_body())


@app.route("/api/products/adjust-stock", methods=["POST"])
@api_errors("No se pudo ajustar el stock")
def api_products_adjust_stock():
    return get_container().inventory_service.adjust_stock(json_body())


# ═══════════════════════════════════════════════════════════════════════════
# SERVICIOS DEL CATÁLOGO
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/api/services", methods=["GET"])
@api_errors("No se pudieron obtener los servicios")
def api_services_list():
    return jsonify(get_container().inventory_service.list_services())


@app.route("/api/services", methods=["POST"])
@api_errors("No se pudo crear el servicio")
def api_services_create():
    return get_container().inventory_service.create_service(json_body()), 201


@app.route("/api/services", methods=["PUT"])
@api_errors("No se pudo actualizar el servicio")
def api_services_update():
    doc_id, fields = split_id(json_body())
    return get_container().inventory_service.update_service(doc_id, fields)


@app.route("/api/services", methods=["DELETE"])
@api_errors("No se pudo eliminar el servicio")
def api_services_delete():
    return get_container().inventory_service.delete_service(request.args.get("id"))


# ═══════════════════════════════════════════════════════════════════════════
# POS - CARRITO (session-based)
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/api/pos/cart", methods=["GET"])
@api_errors("No se pudo leer el carrito")
def api_cart_view():
    return get_container().cart_service.get_cart()


@app.route("/api/pos/cart/add", methods=["POST"])
@api_errors("No se pudo agregar al carrito")
def api_cart_add():
    return get_container().cart_service.add_item(json_body())


@app.route("/api/pos/cart/update", methods=["POST"])
@api_errors("No se pudo modificar el carrito")
def api_cart_update():
    return get_container().cart_service.update_item(json_body())


@app.route("/api/pos/cart/remove", methods=["POST"])
@api_errors("No se pudo quitar del carrito")
def api_cart_remove():
    return get_container().cart_service.remove_item(json_body())


@app.route("/api/pos/cart/clear", methods=["POST"])
@api_errors("No se pudo vaciar el carrito")
def api_cart_clear():
    cart_service = get_container().cart_service
    cart_service.clear()
    return cart_service.get_cart()


@app.route("/api/pos/cart/discount", methods=["POST"])
@api_errors("No se pudo aplicar el descuento")
def api_cart_discount():
    return get_container().cart_service.set_discount(json_body())


@app.route("/api/pos/checkout", methods=["POST"])
@api_errors("No se pudo completar la venta")
def api_cart_checkout():
    return get_container().cart_service.checkout(json_body()), 201


# ═══════════════════════════════════════════════════════════════════════════
# FACTURAS
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/api/invoices", methods=["GET"])
@api_errors("No se pudieron obtener las facturas")
def api_invoices_list():
    """Facturas paginadas de 50 en 50 (?startAfter=<millis>)"""
    return get_container().invoice_service.list_page(request.args.get("startAfter"))


@app.route("/api/invoices", methods=["POST"])
@api_errors("No se pudo crear la factura")
def api_invoices_create():
    return get_container().invoice_service.create_invoice(json_body()), 201


@app.route("/api/invoices", methods=["PUT"])
@api_errors("No se pudo registrar el pago de la factura")
def api_invoices_add_payment():
    return get_container().invoice_service.add_payments(json_body())


@app.route("/api/invoices/<invoice_id>", methods=["GET"])
@api_errors("No se pudo obtener la factura")
def api_invoices_get(invoice_id):
    return get_container().invoice_service.get_invoice(invoice_id)


# ═══════════════════════════════════════════════════════════════════════════
# DASHBOARD Y REPORTES
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/api/dashboard", methods=["GET"])
@api_errors("No se pudieron obtener los datos del panel")
def api_dashboard():
    return get_container().dashboard_service.get_dashboard()


@app.route("/api/reports/day-end", methods=["GET"])
@api_errors("No se pudo generar el reporte de cierre del día")
def api_report_day_end():
    return get_container().report_service.day_end(request.args.get("date"))


@app.route("/api/reports/profit-loss", methods=["GET"])
@api_errors("No se pudo generar el reporte de ganancias")
def api_report_profit_loss():
    args = request.args
    return get_container().report_service.profit_loss(
        args.get("startDate"),
        args.get("endDate"),
        args.get("productId"),
    )


@app.route("/api/reports/stock", methods=["GET"])
@api_errors("No se pudo generar el reporte de stock")
def api_report_stock():
    rows = get_container().report_service.stock_ledger(
        request.args.get("startDate"),
        request.args.get("endDate"),
    )
    return jsonify(rows)


@app.route("/api/reports/employee", methods=["GET"])
@api_errors("No se pudo generar el reporte por empleado")
def api_report_employee():
    return get_container().report_service.employee_jobs(request.args.get("date"))
