# fiscal/services/chave_acesso_service.py
"""
Chave de acesso da NFC-e (44 dígitos):

    cUF(2) + AAMM(4) + CNPJ(14) + mod(2) + serie(3) + nNF(9) + tpEmis(1) + cNF(8) + cDV(1)
"""

from __future__ import annotations

import re
import secrets
from datetime import datetime
from zoneinfo import ZoneInfo

from django.utils import timezone

from fiscal.uf import get_codigo_uf

FUSO_BRASILIA = ZoneInfo("America/Sao_Paulo")

MODELO_NFCE = "65"
TIPO_EMISSAO_NORMAL = "1"


def horario_brasilia(data: datetime) -> datetime:
    if timezone.is_naive(data):
        data = timezone.make_aware(data, FUSO_BRASILIA)
    return data.astimezone(FUSO_BRASILIA)


def calcular_digito_verificador(chave_sem_dv: str) -> str:
    """Módulo 11 com pesos 2..9 aplicados da direita para a esquerda."""
    if not chave_sem_dv.isdigit():
        raise ValueError("Chave de acesso deve conter somente dígitos.")

    soma = 0
    peso = 2
    for digito in reversed(chave_sem_dv):
        soma += int(digito) * peso
        peso = 2 if peso == 9 else peso + 1

    dv = 11 - (soma % 11)
    return "0" if dv >= 10 else str(dv)


def gerar_codigo_numerico() -> str:
    """cNF: 8 dígitos aleatórios (fonte criptográfica)."""
    return f"{secrets.randbelow(10 ** 8):08d}"


def gerar_chave_acesso(
    *,
    uf: str,
    data_emissao: datetime,
    cnpj: str,
    serie: int,
    numero: int,
    codigo_numerico: str,
    modelo: str = MODELO_NFCE,
    tipo_emissao: str = TIPO_EMISSAO_NORMAL,
) -> str:
    """
    Deriva a chave de forma determinística: mesmas entradas → mesma chave.
    """
    cnpj_digitos = re.sub(r"\D", "", cnpj or "")
    if len(cnpj_digitos) != 14:
        raise ValueError("CNPJ deve ter 14 dígitos.")
    if not 0 <= int(serie) <= 999:
        raise ValueError("Série deve estar entre 0 e 999.")
    if not 1 <= int(numero) <= 999_999_999:
        raise ValueError("Número da NFC-e deve estar entre 1 e 999999999.")
    if not (len(codigo_numerico) == 8 and codigo_numerico.isdigit()):
        raise ValueError("Código numérico (cNF) deve ter 8 dígitos.")

    aamm = horario_brasilia(data_emissao).strftime("%y%m")

    chave_sem_dv = (
        f"{get_codigo_uf(uf)}{aamm}{cnpj_digitos}{modelo}"
        f"{int(serie):03d}{int(numero):09d}{tipo_emissao}{codigo_numerico}"
    )
    return chave_sem_dv + calcular_digito_verificador(chave_sem_dv)
