# tests/fiscal/emissao/test_rateio_desconto.py
from decimal import Decimal

import pytest
from lxml import etree

from fiscal.models import NfceCupom
from fiscal.services.emissao_service import _ratear_desconto, emitir_nfce
from tests.helpers import criar_pedido, retorno_autorizacao

NS = {"n": "http://www.portalfiscal.inf.br/nfe"}


@pytest.mark.parametrize(
    "valores, desconto",
    [
        (["1.00"] * 7, "0.05"),
        (["0.01"] * 3 + ["9.97"], "0.04"),
        (["3.33", "3.33", "3.34"], "0.10"),
        (["0.99"] * 11, "1.00"),
        (["50.00"], "7.77"),
    ],
)
def test_rateio_soma_exata_sem_parcela_negativa(valores, desconto):
    valores = [Decimal(v) for v in valores]
    desconto = Decimal(desconto)

    rateio = _ratear_desconto(valores, desconto)

    assert sum(rateio) == desconto
    assert all(Decimal("0.00") <= d <= v for d, v in zip(rateio, valores))
    assert all(d == d.quantize(Decimal("0.01")) for d in rateio)


def test_rateio_proporcional_quando_divide_exato():
    rateio = _ratear_desconto([Decimal("30.00"), Decimal("10.00"), Decimal("10.00")], Decimal("5.00"))

    assert rateio == [Decimal("3.00"), Decimal("1.00"), Decimal("1.00")]


def test_rateio_sem_desconto():
    assert _ratear_desconto([Decimal("1.00"), Decimal("2.00")], Decimal("0.00")) == [Decimal("0.00")] * 2


def test_desconto_maior_que_os_itens_fica_limitado_ao_total():
    rateio = _ratear_desconto([Decimal("1.00"), Decimal("2.00")], Decimal("5.00"))

    assert rateio == [Decimal("1.00"), Decimal("2.00")]


@pytest.mark.django_db
def test_emissao_com_muitos_itens_pequenos_fecha_totais(user, configuracao_fiscal, sefaz_fake):
    """
    7 itens de R$ 1,00 e pedido de R$ 6,95: os vDesc dos itens somam
    exatamente o vDesc do total e nenhum item recebe desconto negativo.
    """
    session, factory = sefaz_fake
    session.respostas.append(retorno_autorizacao())
    itens = tuple((f"Bala {n}", Decimal("1.00"), Decimal("1")) for n in range(1, 8))
    pedido = criar_pedido(user, itens=itens, total=Decimal("6.95"))

    result = emitir_nfce(user=user, pedido_id=pedido.id, sefaz_client_factory=factory)

    cupom = NfceCupom.objects.get(pk=result.cupom_id)
    descontos = [i.valor_desconto for i in cupom.itens.all()]
    assert sum(descontos) == Decimal("0.05")
    assert min(descontos) >= Decimal("0.00")

    inf = etree.fromstring(cupom.xml_content.encode()).find("n:infNFe", NS)
    vdesc_itens = sum(Decimal(v.text) for v in inf.findall("n:det/n:prod/n:vDesc", NS))
    assert vdesc_itens == Decimal("0.05")
    assert inf.findtext("n:total/n:ICMSTot/n:vDesc", namespaces=NS) == "0.05"
    assert inf.findtext("n:total/n:ICMSTot/n:vNF", namespaces=NS) == "6.95"
