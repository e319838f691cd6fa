# Models module
from mapa_clientes.models.cliente import Cliente, Equipamento
from mapa_clientes.models.sync_state import SINGLETON_ID, SyncCursor, SyncPausa
