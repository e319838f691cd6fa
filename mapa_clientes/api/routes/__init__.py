# API Routes module
from mapa_clientes.api.routes.clientes import router as clientes_router
from mapa_clientes.api.routes.sync import router as sync_router
