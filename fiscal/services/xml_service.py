# fiscal/services/xml_service.py
"""
Geração do XML da NFC-e (layout 4.00, modelo 65), sem assinatura.

Regime simplificado: todos os itens saem com ICMSSN102, PISOutr e COFINSOutr
zerados (ver fiscal.uf.CLASSIFICACAO_PADRAO).
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Iterable, Optional

from django.conf import settings
from lxml import etree

from fiscal.models import ConfiguracaoFiscal, NfceCupom, NfceItem
from fiscal.sefaz_clients import NFE_NS
from fiscal.sefaz_endpoints import tp_amb
from fiscal.services.chave_acesso_service import horario_brasilia
from fiscal.uf import CLASSIFICACAO_PADRAO, get_codigo_uf

ZERO = Decimal("0.00")

RESPONSAVEL_TECNICO_PADRAO = {
    "cnpj": "00000000000000",
    "contato": "Suporte Tecnico",
    "email": "suporte@example.com",
    "fone": "11999999999",
}


def _nfe(tag: str) -> str:
    return f"{{{NFE_NS}}}{tag}"


def _sub(parent: etree._Element, tag: str, valor=None) -> etree._Element:
    el = etree.SubElement(parent, _nfe(tag))
    if valor is not None:
        el.text = str(valor)
    return el


def _sub_opcional(parent: etree._Element, tag: str, valor) -> Optional[etree._Element]:
    if valor in (None, ""):
        return None
    return _sub(parent, tag, valor)


def _dinheiro(valor) -> str:
    return f"{Decimal(valor or 0):.2f}"


def _quantidade(valor) -> str:
    return f"{Decimal(valor or 0):.4f}"


def _digitos(valor: Optional[str]) -> str:
    return re.sub(r"\D", "", valor or "")


def _ide(inf: etree._Element, cupom: NfceCupom, config: ConfiguracaoFiscal) -> None:
    ide = _sub(inf, "ide")
    _sub(ide, "cUF", get_codigo_uf(cupom.uf))
    _sub(ide, "cNF", cupom.codigo_numerico)
    _sub(ide, "natOp", "VENDA")
    _sub(ide, "mod", "65")
    _sub(ide, "serie", cupom.serie)
    _sub(ide, "nNF", cupom.numero)
    _sub(ide, "dhEmi", horario_brasilia(cupom.data_hora_emissao).isoformat(timespec="seconds"))
    _sub(ide, "tpNF", "1")
    _sub(ide, "idDest", "1")
    _sub(ide, "cMunFG", config.codigo_municipio)
    _sub(ide, "tpImp", "4")
    _sub(ide, "tpEmis", "1")
    _sub(ide, "cDV", cupom.chave_acesso[-1])
    _sub(ide, "tpAmb", tp_amb(cupom.ambiente))
    _sub(ide, "finNFe", "1")
    _sub(ide, "indFinal", "1")
    _sub(ide, "indPres", "1")
    _sub(ide, "procEmi", "0")
    _sub(ide, "verProc", getattr(settings, "FISCAL_VERSAO_PROCESSO", "1.0"))


def _emit(inf: etree._Element, config: ConfiguracaoFiscal) -> None:
    emit = _sub(inf, "emit")
    _sub(emit, "CNPJ", _digitos(config.cnpj))
    _sub(emit, "xNome", config.razao_social)
    _sub_opcional(emit, "xFant", config.nome_fantasia)

    ender = _sub(emit, "enderEmit")
    _sub(ender, "xLgr", config.logradouro)
    _sub(ender, "nro", config.numero_endereco)
    _sub_opcional(ender, "xCpl", config.complemento)
    _sub(ender, "xBairro", config.bairro)
    _sub(ender, "cMun", config.codigo_municipio)
    _sub(ender, "xMun", config.municipio)
    _sub(ender, "UF", config.uf.upper())
    _sub(ender, "CEP", _digitos(config.cep))
    _sub(ender, "cPais", "1058")
    _sub(ender, "xPais", "BRASIL")
    _sub_opcional(ender, "fone", _digitos(config.telefone))

    _sub(emit, "IE", _digitos(config.inscricao_estadual) or config.inscricao_estadual)
    _sub(emit, "CRT", config.regime_tributario)


def _dest(inf: etree._Element, cupom: NfceCupom) -> None:
    documento = _digitos(cupom.consumidor_cpf_cnpj)
    if len(documento) not in (11, 14):
        return

    dest = _sub(inf, "dest")
    _sub(dest, "CPF" if len(documento) == 11 else "CNPJ", documento)
    _sub_opcional(dest, "xNome", cupom.consumidor_nome)
    _sub(dest, "indIEDest", "9")
    _sub_opcional(dest, "email", cupom.consumidor_email)


def _det(inf: etree._Element, item: NfceItem) -> None:
    det = _sub(inf, "det")
    det.set("nItem", str(item.numero_item))

    prod = _sub(det, "prod")
    _sub(prod, "cProd", item.codigo_produto)
    _sub(prod, "cEAN", "SEM GTIN")
    _sub(prod, "xProd", item.descricao)
    _sub(prod, "NCM", item.ncm)
    _sub(prod, "CFOP", item.cfop)
    _sub(prod, "uCom", item.unidade)
    _sub(prod, "qCom", _quantidade(item.quantidade))
    _sub(prod, "vUnCom", _dinheiro(item.valor_unitario))
    _sub(prod, "vProd", _dinheiro(item.valor_total))
    _sub(prod, "cEANTrib", "SEM GTIN")
    _sub(prod, "uTrib", item.unidade)
    _sub(prod, "qTrib", _quantidade(item.quantidade))
    _sub(prod, "vUnTrib", _dinheiro(item.valor_unitario))
    if item.valor_desconto and item.valor_desconto > 0:
        _sub(prod, "vDesc", _dinheiro(item.valor_desconto))
    _sub(prod, "indTot", "1")

    imposto = _sub(det, "imposto")

    icms = _sub(_sub(imposto, "ICMS"), "ICMSSN102")
    _sub(icms, "orig", CLASSIFICACAO_PADRAO.origem)
    _sub(icms, "CSOSN", item.cst_icms)

    pis = _sub(_sub(imposto, "PIS"), "PISOutr")
    _sub(pis, "CST", item.cst_pis)
    _sub(pis, "vBC", _dinheiro(ZERO))
    _sub(pis, "pPIS", _dinheiro(item.aliquota_pis))
    _sub(pis, "vPIS", _dinheiro(item.valor_pis))

    cofins = _sub(_sub(imposto, "COFINS"), "COFINSOutr")
    _sub(cofins, "CST", item.cst_cofins)
    _sub(cofins, "vBC", _dinheiro(ZERO))
    _sub(cofins, "pCOFINS", _dinheiro(item.aliquota_cofins))
    _sub(cofins, "vCOFINS", _dinheiro(item.valor_cofins))


def _total(inf: etree._Element, cupom: NfceCupom, itens: list[NfceItem]) -> None:
    valor_produtos = sum((i.valor_total for i in itens), ZERO)
    valor_pis = sum((i.valor_pis for i in itens), ZERO)
    valor_cofins = sum((i.valor_cofins for i in itens), ZERO)

    tot = _sub(_sub(inf, "total"), "ICMSTot")
    campos = (
        ("vBC", ZERO),
        ("vICMS", ZERO),
        ("vICMSDeson", ZERO),
        ("vFCP", ZERO),
        ("vBCST", ZERO),
        ("vST", ZERO),
        ("vFCPST", ZERO),
        ("vFCPSTRet", ZERO),
        ("vProd", valor_produtos),
        ("vFrete", ZERO),
        ("vSeg", ZERO),
        ("vDesc", cupom.valor_desconto),
        ("vII", ZERO),
        ("vIPI", ZERO),
        ("vIPIDevol", ZERO),
        ("vPIS", valor_pis),
        ("vCOFINS", valor_cofins),
        ("vOutro", ZERO),
        ("vNF", cupom.valor_total),
        ("vTotTrib", cupom.valor_tributos),
    )
    for tag, valor in campos:
        _sub(tot, tag, _dinheiro(valor))


def _resp_tec(inf: etree._Element) -> None:
    dados = {**RESPONSAVEL_TECNICO_PADRAO, **getattr(settings, "FISCAL_RESPONSAVEL_TECNICO", {})}
    resp = _sub(inf, "infRespTec")
    _sub(resp, "CNPJ", _digitos(dados["cnpj"]))
    _sub(resp, "xContato", dados["contato"])
    _sub(resp, "email", dados["email"])
    _sub(resp, "fone", _digitos(dados["fone"]))


def gerar_xml_nfce(
    cupom: NfceCupom,
    itens: Iterable[NfceItem],
    configuracao: ConfiguracaoFiscal,
) -> str:
    itens = list(itens)

    root = etree.Element(_nfe("NFe"), nsmap={None: NFE_NS})
    inf = _sub(root, "infNFe")
    inf.set("Id", f"NFe{cupom.chave_acesso}")
    inf.set("versao", "4.00")

    _ide(inf, cupom, configuracao)
    _emit(inf, configuracao)
    _dest(inf, cupom)
    for item in itens:
        _det(inf, item)
    _total(inf, cupom, itens)

    transp = _sub(inf, "transp")
    _sub(transp, "modFrete", "9")

    det_pag = _sub(_sub(inf, "pag"), "detPag")
    _sub(det_pag, "tPag", "01")
    _sub(det_pag, "vPag", _dinheiro(cupom.valor_total))

    if cupom.observacoes:
        _sub(_sub(inf, "infAdic"), "infCpl", cupom.observacoes)

    _resp_tec(inf)

    return etree.tostring(root, encoding="unicode")
