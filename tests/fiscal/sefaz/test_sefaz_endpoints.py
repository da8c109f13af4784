# tests/fiscal/sefaz/test_sefaz_endpoints.py
import pytest

from fiscal.sefaz_endpoints import get_qrcode_base_url, get_sefaz_endpoint, normalizar_ambiente, tp_amb
from fiscal.uf import get_uf_config, uf_suportada
from fiscal.uf.tabela import UFS


def test_todas_as_27_ufs_mapeadas():
    assert len(UFS) == 27
    assert len({cfg.uf for cfg in UFS}) == 27
    assert len({cfg.codigo_ibge for cfg in UFS}) == 27


@pytest.mark.parametrize("cfg", UFS, ids=lambda cfg: cfg.uf)
def test_producao_e_homologacao_por_uf(cfg):
    producao = get_sefaz_endpoint(cfg.uf, "production")
    homologacao = get_sefaz_endpoint(cfg.uf, "staging")

    assert producao.startswith(f"https://nfce.{cfg.sefaz_host}/")
    assert homologacao.startswith(f"https://hom-nfce.{cfg.sefaz_host}/")
    assert producao != homologacao


def test_servicos():
    assert get_sefaz_endpoint("SP", "staging", "recepcao").endswith("/NfceRecepcao")
    assert get_sefaz_endpoint("SP", "staging", "consulta").endswith("/NfceConsulta")
    assert get_sefaz_endpoint("SP", "staging", "cancelamento").endswith("/NfceCancelamento")

    with pytest.raises(ValueError):
        get_sefaz_endpoint("SP", "staging", "inutilizacao")


def test_uf_desconhecida_cai_em_sp():
    assert uf_suportada("XX") is False
    assert get_uf_config("XX").uf == "SP"
    assert get_sefaz_endpoint("XX", "production") == get_sefaz_endpoint("SP", "production")
    assert get_sefaz_endpoint(None, "production") == get_sefaz_endpoint("SP", "production")


def test_uf_minuscula_normalizada():
    assert get_sefaz_endpoint("mg", "production") == get_sefaz_endpoint("MG", "production")


def test_ambiente_desconhecido_nunca_vira_producao():
    assert normalizar_ambiente("producao") == "production"
    assert normalizar_ambiente("homolog") == "staging"
    assert normalizar_ambiente("qualquer") == "staging"
    assert normalizar_ambiente(None) == "staging"
    assert tp_amb("production") == "1"
    assert tp_amb("staging") == "2"


def test_url_base_do_qrcode():
    assert get_qrcode_base_url("SP", "production") == "https://www.fazenda.sp.gov.br/nfce/consulta"
    assert get_qrcode_base_url("SP", "staging") == "https://hom.fazenda.sp.gov.br/nfce/consulta"
