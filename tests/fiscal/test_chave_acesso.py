# tests/fiscal/test_chave_acesso.py
from datetime import datetime

import pytest

from fiscal.services.chave_acesso_service import (
    FUSO_BRASILIA,
    calcular_digito_verificador,
    gerar_chave_acesso,
    gerar_codigo_numerico,
)

EMISSAO = datetime(2025, 1, 15, 10, 30, tzinfo=FUSO_BRASILIA)


def _chave(**overrides):
    dados = dict(
        uf="SP",
        data_emissao=EMISSAO,
        cnpj="12.345.678/0001-95",
        serie=1,
        numero=1,
        codigo_numerico="12345678",
    )
    dados.update(overrides)
    return gerar_chave_acesso(**dados)


def test_layout_da_chave():
    chave = _chave()

    assert len(chave) == 44
    assert chave.isdigit()
    assert chave[:2] == "35"            # cUF
    assert chave[2:6] == "2501"         # AAMM
    assert chave[6:20] == "12345678000195"
    assert chave[20:22] == "65"         # modelo
    assert chave[22:25] == "001"        # série
    assert chave[25:34] == "000000001"  # nNF
    assert chave[34] == "1"             # tpEmis
    assert chave[35:43] == "12345678"   # cNF
    assert chave[43] == calcular_digito_verificador(chave[:43])


def test_mesmas_entradas_mesma_chave():
    assert _chave() == _chave()


@pytest.mark.parametrize(
    "overrides",
    [
        {"uf": "MG"},
        {"data_emissao": datetime(2026, 1, 15, 10, 30, tzinfo=FUSO_BRASILIA)},
        {"data_emissao": datetime(2025, 2, 15, 10, 30, tzinfo=FUSO_BRASILIA)},
        {"cnpj": "98.765.432/0001-10"},
        {"serie": 2},
        {"numero": 2},
        {"codigo_numerico": "87654321"},
    ],
)
def test_qualquer_entrada_diferente_muda_a_chave(overrides):
    assert _chave(**overrides) != _chave()


def test_digito_verificador_modulo_11():
    # soma ponderada 2..9 da direita para a esquerda
    assert calcular_digito_verificador("1") == "9"        # 11 - 2
    assert calcular_digito_verificador("0" * 43) == "0"   # resto 0 → 11 → 0
    assert calcular_digito_verificador("5") == "1"        # 11 - 10
    assert calcular_digito_verificador("6") == "0"        # 12 % 11 = 1 → 10 → 0


def test_codigo_numerico_tem_8_digitos():
    codigo = gerar_codigo_numerico()

    assert len(codigo) == 8
    assert codigo.isdigit()


@pytest.mark.parametrize(
    "overrides",
    [
        {"cnpj": "123"},
        {"numero": 0},
        {"numero": 1_000_000_000},
        {"serie": 1000},
        {"codigo_numerico": "12AB"},
    ],
)
def test_entradas_invalidas(overrides):
    with pytest.raises(ValueError):
        _chave(**overrides)


def test_uf_desconhecida_usa_codigo_de_sp():
    assert _chave(uf="XX")[:2] == "35"
    assert _chave(uf="mg")[:2] == "31"
