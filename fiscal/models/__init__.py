from .configuracao_models import Ambiente, ConfiguracaoFiscal, RegimeTributario
from .nfce_models import NfceCupom, NfceItem, NfceStatus, NfceTransmissao, TipoOperacao


__all__ = [
    "Ambiente",
    "ConfiguracaoFiscal",
    "RegimeTributario",
    "NfceCupom",
    "NfceItem",
    "NfceStatus",
    "NfceTransmissao",
    "TipoOperacao",
]
