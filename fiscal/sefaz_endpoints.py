# fiscal/sefaz_endpoints.py
"""
Roteamento dos webservices NFC-e por (UF, ambiente, serviço).

UF desconhecida cai no endpoint de SP (ver fiscal.uf.get_uf_config): útil para
não quebrar o fluxo, mas o resultado não serve para uma transmissão real.
"""

from __future__ import annotations

from fiscal.uf import get_uf_config

AMBIENTE_PRODUCAO = "production"
AMBIENTE_HOMOLOGACAO = "staging"

SERVICOS = {
    "recepcao": "NfceRecepcao",
    "consulta": "NfceConsulta",
    "cancelamento": "NfceCancelamento",
}


def normalizar_ambiente(ambiente: str | None) -> str:
    """
    Aceita variações comuns e converte para 'production' | 'staging'.
    Qualquer valor não reconhecido vira homologação (nunca produção por engano).
    """
    if not ambiente:
        return AMBIENTE_HOMOLOGACAO

    amb = ambiente.strip().lower()
    if amb in {"production", "producao", "produção", "prod", "1"}:
        return AMBIENTE_PRODUCAO
    return AMBIENTE_HOMOLOGACAO


def tp_amb(ambiente: str | None) -> str:
    """Flag tpAmb do layout: 1 = produção, 2 = homologação."""
    return "1" if normalizar_ambiente(ambiente) == AMBIENTE_PRODUCAO else "2"


def get_sefaz_endpoint(uf: str | None, ambiente: str | None, servico: str = "recepcao") -> str:
    try:
        caminho = SERVICOS[servico]
    except KeyError:
        raise ValueError(f"Serviço SEFAZ desconhecido: {servico}") from None

    host = get_uf_config(uf).sefaz_host
    prefixo = "nfce" if normalizar_ambiente(ambiente) == AMBIENTE_PRODUCAO else "hom-nfce"
    return f"https://{prefixo}.{host}/nfce/services/{caminho}"


def get_qrcode_base_url(uf: str | None, ambiente: str | None) -> str:
    host = get_uf_config(uf).sefaz_host
    prefixo = "www" if normalizar_ambiente(ambiente) == AMBIENTE_PRODUCAO else "hom"
    return f"https://{prefixo}.{host}/nfce/consulta"
