# fiscal/uf/__init__.py
from __future__ import annotations

import logging
from typing import Dict

from .base import CLASSIFICACAO_PADRAO, ClassificacaoTributariaPadrao, FiscalUFConfig
from .tabela import UFS

logger = logging.getLogger("pdv.fiscal")

UF_PADRAO = "SP"

# Registry interno, 1:1 por UF
_UF_CONFIGS: Dict[str, FiscalUFConfig] = {cfg.uf: cfg for cfg in UFS}


def uf_suportada(uf: str | None) -> bool:
    return bool(uf) and uf.strip().upper() in _UF_CONFIGS


def get_uf_config(uf: str | None) -> FiscalUFConfig:
    """
    Retorna a configuração fiscal para a UF informada.

    Regras:
      - Normaliza UF para maiúsculas.
      - Se vier None ou string vazia, assume 'SP' como default.
      - Se UF não estiver mapeada, também faz fallback para 'SP' (com warning:
        o resultado não serve para uma transmissão real).
    """
    if not uf:
        return _UF_CONFIGS[UF_PADRAO]

    key = uf.strip().upper()
    config = _UF_CONFIGS.get(key)
    if config is None:
        logger.warning(
            "uf_desconhecida_fallback_sp",
            extra={"event": "uf_fallback", "uf": uf, "uf_utilizada": UF_PADRAO},
        )
        return _UF_CONFIGS[UF_PADRAO]
    return config


def get_codigo_uf(uf: str | None) -> str:
    """Código IBGE (cUF) de 2 dígitos da UF."""
    return get_uf_config(uf).codigo_ibge


__all__ = [
    "CLASSIFICACAO_PADRAO",
    "ClassificacaoTributariaPadrao",
    "FiscalUFConfig",
    "UF_PADRAO",
    "get_codigo_uf",
    "get_uf_config",
    "uf_suportada",
]
