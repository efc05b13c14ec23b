import logging
from fastapi import FastAPI
from storefront.version import VERSION
from storefront.core.config import settings
from storefront.core.logging import configure_logging
from storefront.core.responses import register_exception_handlers
from storefront.api import auth, users, categories, products, carts, orders, order_details, user_addresses, contents, guest_messages, statistics
from prometheus_fastapi_instrumentator import Instrumentator

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger("storefront")

# Create instrumentator first
instrumentator = Instrumentator()

app = FastAPI(title='Storefront Service', version=VERSION)

# Instrument the app BEFORE adding routes or middleware
instrumentator.instrument(app).expose(
    app,
    include_in_schema=False,
    endpoint="/metrics",
    should_gzip=True,
)

register_exception_handlers(app)

@app.get('/health')
def health(): return {'status':'ok'}

@app.get('/v1/_info')
def info(): return {'service':'storefront','version':VERSION}

@app.on_event("startup")
async def startup_event():
    for route in app.routes:
        if hasattr(route, "methods") and hasattr(route, "path"):
            logger.debug("%s %s", sorted(route.methods), route.path)

# public + signed-in storefront
app.include_router(auth.router,           prefix='/api/auth',            tags=['auth'])
app.include_router(products.router,       prefix='/api/products',        tags=['products'])
app.include_router(categories.router,     prefix='/api/categories',      tags=['categories'])
app.include_router(contents.router,       prefix='/api/contents',        tags=['contents'])
app.include_router(guest_messages.router, prefix='/api/guest-messages',  tags=['guest-messages'])
app.include_router(carts.router,          prefix='/api/carts',           tags=['carts'])
app.include_router(orders.router,         prefix='/api/orders',          tags=['orders'])
app.include_router(order_details.router,  prefix='/api/order_details',   tags=['order-details'])
app.include_router(user_addresses.router, prefix='/api/user_addresses',  tags=['user-addresses'])
app.include_router(users.router,          prefix='/api/user',            tags=['user'])

# admin
app.include_router(users.admin_router,          prefix='/api/admin/users',          tags=['admin'])
app.include_router(products.admin_router,       prefix='/api/admin/products',       tags=['admin'])
app.include_router(categories.admin_router,     prefix='/api/admin/categories',     tags=['admin'])
app.include_router(carts.admin_router,          prefix='/api/admin/carts',          tags=['admin'])
app.include_router(orders.admin_router,         prefix='/api/admin/orders',         tags=['admin'])
app.include_router(order_details.admin_router,  prefix='/api/admin/order-details',  tags=['admin'])
app.include_router(user_addresses.admin_router, prefix='/api/admin/user-addresses', tags=['admin'])
app.include_router(guest_messages.admin_router, prefix='/api/admin/guest-messages', tags=['admin'])
app.include_router(contents.admin_router,       prefix='/api/admin/contents',       tags=['admin'])
app.include_router(statistics.admin_router,     prefix='/api/admin/statistics',     tags=['admin'])
