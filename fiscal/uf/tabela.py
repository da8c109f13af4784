# fiscal/uf/tabela.py
from __future__ import annotations

from .base import FiscalUFConfig


# --------------------------------------------------------------------
# As 27 unidades federativas: código IBGE + host dos webservices NFC-e
# --------------------------------------------------------------------
UFS = (
    FiscalUFConfig(uf="AC", nome="Acre", codigo_ibge="12", sefaz_host="sefaznet.ac.gov.br"),
    FiscalUFConfig(uf="AL", nome="Alagoas", codigo_ibge="27", sefaz_host="sefaz.al.gov.br"),
    FiscalUFConfig(uf="AP", nome="Amapá", codigo_ibge="16", sefaz_host="sefaz.ap.gov.br"),
    FiscalUFConfig(uf="AM", nome="Amazonas", codigo_ibge="13", sefaz_host="sefaz.am.gov.br"),
    FiscalUFConfig(uf="BA", nome="Bahia", codigo_ibge="29", sefaz_host="sefaz.ba.gov.br"),
    FiscalUFConfig(uf="CE", nome="Ceará", codigo_ibge="23", sefaz_host="sefaz.ce.gov.br"),
    FiscalUFConfig(uf="DF", nome="Distrito Federal", codigo_ibge="53", sefaz_host="fazenda.df.gov.br"),
    FiscalUFConfig(uf="ES", nome="Espírito Santo", codigo_ibge="32", sefaz_host="sefaz.es.gov.br"),
    FiscalUFConfig(uf="GO", nome="Goiás", codigo_ibge="52", sefaz_host="sefaz.go.gov.br"),
    FiscalUFConfig(uf="MA", nome="Maranhão", codigo_ibge="21", sefaz_host="sefaz.ma.gov.br"),
    FiscalUFConfig(uf="MT", nome="Mato Grosso", codigo_ibge="51", sefaz_host="sefaz.mt.gov.br"),
    FiscalUFConfig(uf="MS", nome="Mato Grosso do Sul", codigo_ibge="50", sefaz_host="sefaz.ms.gov.br"),
    FiscalUFConfig(uf="MG", nome="Minas Gerais", codigo_ibge="31", sefaz_host="fazenda.mg.gov.br"),
    FiscalUFConfig(uf="PA", nome="Pará", codigo_ibge="15", sefaz_host="sefa.pa.gov.br"),
    FiscalUFConfig(uf="PB", nome="Paraíba", codigo_ibge="25", sefaz_host="receita.pb.gov.br"),
    FiscalUFConfig(uf="PR", nome="Paraná", codigo_ibge="41", sefaz_host="fazenda.pr.gov.br"),
    FiscalUFConfig(uf="PE", nome="Pernambuco", codigo_ibge="26", sefaz_host="sefaz.pe.gov.br"),
    FiscalUFConfig(uf="PI", nome="Piauí", codigo_ibge="22", sefaz_host="sefaz.pi.gov.br"),
    FiscalUFConfig(uf="RJ", nome="Rio de Janeiro", codigo_ibge="33", sefaz_host="fazenda.rj.gov.br"),
    FiscalUFConfig(uf="RN", nome="Rio Grande do Norte", codigo_ibge="24", sefaz_host="set.rn.gov.br"),
    FiscalUFConfig(uf="RS", nome="Rio Grande do Sul", codigo_ibge="43", sefaz_host="sefazrs.rs.gov.br"),
    FiscalUFConfig(uf="RO", nome="Rondônia", codigo_ibge="11", sefaz_host="sefin.ro.gov.br"),
    FiscalUFConfig(uf="RR", nome="Roraima", codigo_ibge="14", sefaz_host="sefaz.rr.gov.br"),
    FiscalUFConfig(uf="SC", nome="Santa Catarina", codigo_ibge="42", sefaz_host="sef.sc.gov.br"),
    FiscalUFConfig(uf="SP", nome="São Paulo", codigo_ibge="35", sefaz_host="fazenda.sp.gov.br"),
    FiscalUFConfig(uf="SE", nome="Sergipe", codigo_ibge="28", sefaz_host="sefaz.se.gov.br"),
    FiscalUFConfig(uf="TO", nome="Tocantins", codigo_ibge="17", sefaz_host="sefaz.to.gov.br"),
)
