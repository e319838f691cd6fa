"""
Mapa de Clientes - sincronização Odoo + planilha de equipamentos com geocodificação.

Lê os clientes do CRM (Odoo), casa com a planilha de equipamentos, resolve o
endereço de cada um em coordenadas (ViaCEP, Google, Nominatim) e grava tudo
numa base local consultada pelo mapa.

Usage:
    python -m mapa_clientes init-db            # Criar tabelas
    python -m mapa_clientes sync               # Uma passagem de sincronização
    python -m mapa_clientes run                # Passagens a cada SYNC_INTERVAL_MINUTES
    python -m mapa_clientes status             # Cursor e pausa
    python -m mapa_clientes serve              # API de leitura
    python -m mapa_clientes geocode <endereco> # Diagnóstico de geocodificação
"""

__version__ = "1.0.0"
