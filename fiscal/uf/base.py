# fiscal/uf/base.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FiscalUFConfig:
    """
    Metadados fiscais por UF, utilizados por:

      - Chave de acesso (cUF, código IBGE da UF).
      - Roteamento dos webservices NFC-e (host SEFAZ por UF).
      - URL de consulta do QR Code (mesmo host, prefixo www/hom).

    Essa config não fala com a SEFAZ diretamente; ela só organiza
    metadados usados pelos services e pelo client SEFAZ.
    """

    uf: str  # 'SP', 'MG', ...
    nome: str
    codigo_ibge: str  # '35', '31', ...
    sefaz_host: str  # 'fazenda.sp.gov.br'

    modelo_nfce: str = "65"
    layout_versao: str = "4.00"


@dataclass(frozen=True)
class ClassificacaoTributariaPadrao:
    """
    Classificação tributária genérica aplicada a todos os itens da NFC-e.

    Simplificação do Simples Nacional: não é calculada a partir do cadastro
    fiscal do produto. ICMS/PIS/COFINS saem zerados.
    """

    ncm: str = "00000000"
    cfop: str = "5102"
    unidade: str = "UN"
    csosn_icms: str = "102"
    origem: str = "0"
    cst_pis: str = "07"
    cst_cofins: str = "07"


CLASSIFICACAO_PADRAO = ClassificacaoTributariaPadrao()
