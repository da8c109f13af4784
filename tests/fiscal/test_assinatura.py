# tests/fiscal/test_assinatura.py
import base64

import pytest
from lxml import etree

from fiscal.assinatura import DSIG_NS, AssinadorXML, canonicalizar, verificar_assinatura
from fiscal.certificado import carregar_certificado
from fiscal.exceptions import SigningError
from tests.helpers import SENHA_PFX, gerar_certificado_pfx

NFE_NS = "http://www.portalfiscal.inf.br/nfe"

XML_NFE = (
    f'<NFe xmlns="{NFE_NS}">'
    '<infNFe Id="NFe35250112345678000195650010000000011123456780" versao="4.00">'
    "<ide><cUF>35</cUF><nNF>1</nNF></ide>"
    "<emit><CNPJ>12345678000195</CNPJ><xNome>EMPRESA TESTE LTDA</xNome></emit>"
    "</infNFe>"
    "</NFe>"
)


@pytest.fixture(scope="module")
def certificado():
    pfx = gerar_certificado_pfx()
    return carregar_certificado(base64.b64encode(pfx).decode("ascii"), SENHA_PFX)


def test_assina_e_verifica(certificado):
    assinado = AssinadorXML(certificado).assinar(XML_NFE, tag="infNFe")

    root = etree.fromstring(assinado.encode("utf-8"))
    signature = root[-1]
    assert signature.tag == f"{{{DSIG_NS}}}Signature"

    ns = {"ds": DSIG_NS}
    assert signature.xpath("ds:SignedInfo/ds:Reference/@URI", namespaces=ns) == [
        "#NFe35250112345678000195650010000000011123456780"
    ]
    assert signature.xpath("string(ds:SignedInfo/ds:SignatureMethod/@Algorithm)", namespaces=ns).endswith("rsa-sha1")
    assert signature.xpath("string(ds:KeyInfo/ds:X509Data/ds:X509Certificate)", namespaces=ns)

    assert verificar_assinatura(assinado) is True
    assert verificar_assinatura(assinado, certificado.certificado) is True


def test_sem_tag_assina_o_unico_elemento_com_id(certificado):
    assinado = AssinadorXML(certificado).assinar(XML_NFE)

    assert verificar_assinatura(assinado) is True


def test_conteudo_alterado_invalida_assinatura(certificado):
    assinado = AssinadorXML(certificado).assinar(XML_NFE, tag="infNFe")

    adulterado = assinado.replace("<nNF>1</nNF>", "<nNF>2</nNF>")

    assert adulterado != assinado
    assert verificar_assinatura(adulterado) is False


def test_espacos_entre_tags_nao_afetam_o_digest(certificado):
    indentado = XML_NFE.replace("><", ">\n  <")

    a = canonicalizar(etree.fromstring(XML_NFE.encode()).find(f"{{{NFE_NS}}}infNFe"))
    b = canonicalizar(etree.fromstring(indentado.encode()).find(f"{{{NFE_NS}}}infNFe"))

    assert a == b


def test_alvo_inexistente(certificado):
    with pytest.raises(SigningError):
        AssinadorXML(certificado).assinar(XML_NFE, tag="infCanc")


def test_alvo_ambiguo(certificado):
    xml = f'<raiz xmlns="{NFE_NS}"><a Id="A1"/><b Id="B1"/></raiz>'

    with pytest.raises(SigningError):
        AssinadorXML(certificado).assinar(xml)


def test_alvo_sem_id(certificado):
    xml = f'<NFe xmlns="{NFE_NS}"><infNFe versao="4.00"/></NFe>'

    with pytest.raises(SigningError):
        AssinadorXML(certificado).assinar(xml, tag="infNFe")


def test_xml_malformado(certificado):
    with pytest.raises(SigningError):
        AssinadorXML(certificado).assinar("<NFe><infNFe>", tag="infNFe")


def test_xml_sem_assinatura_nao_verifica():
    assert verificar_assinatura(XML_NFE) is False
