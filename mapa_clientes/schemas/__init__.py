# Schemas module
from mapa_clientes.schemas.geo import ComponentesEndereco, FragmentoCep, GeoResultado
from mapa_clientes.schemas.parceiro import EntradaPlanilha, ItemEquipamento, ParceiroCrm
from mapa_clientes.schemas.sync import ClienteOut, EquipamentoOut, ResumoPassagem, SyncStatus
