# fiscal/assinatura.py
"""
Assinatura XML-DSig enveloped (SHA-1 / RSA-SHA1) dos documentos NFC-e.

Canonicalização: serialização C14N do lxml seguida de remoção dos espaços
entre tags. É a canonicalização simplificada adotada pelo emissor (suficiente
para homologação); a troca por C14N estrita do W3C está registrada no DESIGN.md.
"""

from __future__ import annotations

import base64
import copy
import hashlib
import logging
import re
from typing import Optional

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from lxml import etree

from fiscal.certificado import CertificadoA1
from fiscal.exceptions import SigningError

logger = logging.getLogger("pdv.fiscal")

DSIG_NS = "http://www.w3.org/2000/09/xmldsig#"
C14N_ALGORITHM = "http://www.w3.org/TR/2001/REC-xml-c14n-20010315"
SIGNATURE_ALGORITHM = "http://www.w3.org/2000/09/xmldsig#rsa-sha1"
DIGEST_ALGORITHM = "http://www.w3.org/2000/09/xmldsig#sha1"
ENVELOPED_TRANSFORM = "http://www.w3.org/2000/09/xmldsig#enveloped-signature"

_ESPACO_ENTRE_TAGS = re.compile(rb">\s+<")


def _ds(tag: str) -> str:
    return f"{{{DSIG_NS}}}{tag}"


def _parse(xml: str | bytes) -> etree._Element:
    data = xml.encode("utf-8") if isinstance(xml, str) else xml
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    return etree.fromstring(data, parser)


def canonicalizar(elemento: etree._Element) -> bytes:
    """C14N do elemento (com namespaces herdados) sem espaços entre tags."""
    c14n = etree.tostring(elemento, method="c14n")
    return _ESPACO_ENTRE_TAGS.sub(b"><", c14n).strip()


def _digest(elemento: etree._Element) -> str:
    return base64.b64encode(hashlib.sha1(canonicalizar(elemento)).digest()).decode("ascii")


def _localizar_alvo(root: etree._Element, tag: Optional[str]) -> etree._Element:
    if tag:
        candidatos = root.xpath("//*[local-name()=$tag]", tag=tag)
    else:
        candidatos = root.xpath("//*[@Id]")

    if not candidatos:
        raise SigningError("Elemento a ser assinado não encontrado no XML.")
    if len(candidatos) > 1:
        raise SigningError("Mais de um elemento candidato à assinatura encontrado no XML.")

    alvo = candidatos[0]
    if not alvo.get("Id"):
        raise SigningError(f"Elemento {etree.QName(alvo).localname} não possui atributo Id.")
    return alvo


class AssinadorXML:
    """
    Assina o único elemento com atributo Id do documento e anexa
    <Signature> como último filho da raiz.
    """

    def __init__(self, certificado: CertificadoA1):
        self.certificado = certificado

    def _assinar_bytes(self, dados: bytes) -> bytes:
        chave = self.certificado.chave_privada
        if not isinstance(chave, rsa.RSAPrivateKey):
            raise SigningError("Chave privada do certificado não é RSA.")
        try:
            return chave.sign(dados, padding.PKCS1v15(), hashes.SHA1())
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise SigningError(f"Chave privada inutilizável para assinatura: {exc}") from exc

    def _montar_signed_info(self, parent: etree._Element, referencia: str, digest: str) -> etree._Element:
        signed_info = etree.SubElement(parent, _ds("SignedInfo"))
        etree.SubElement(signed_info, _ds("CanonicalizationMethod"), Algorithm=C14N_ALGORITHM)
        etree.SubElement(signed_info, _ds("SignatureMethod"), Algorithm=SIGNATURE_ALGORITHM)

        reference = etree.SubElement(signed_info, _ds("Reference"), URI=f"#{referencia}")
        transforms = etree.SubElement(reference, _ds("Transforms"))
        etree.SubElement(transforms, _ds("Transform"), Algorithm=ENVELOPED_TRANSFORM)
        etree.SubElement(transforms, _ds("Transform"), Algorithm=C14N_ALGORITHM)
        etree.SubElement(reference, _ds("DigestMethod"), Algorithm=DIGEST_ALGORITHM)
        etree.SubElement(reference, _ds("DigestValue")).text = digest
        return signed_info

    def assinar(self, xml: str, tag: Optional[str] = None) -> str:
        try:
            root = _parse(xml)
        except etree.XMLSyntaxError as exc:
            raise SigningError(f"XML malformado: {exc}") from exc

        alvo = _localizar_alvo(root, tag)
        referencia = alvo.get("Id")
        digest = _digest(alvo)

        signature = etree.Element(_ds("Signature"), nsmap={None: DSIG_NS})
        signed_info = self._montar_signed_info(signature, referencia, digest)

        assinatura = self._assinar_bytes(canonicalizar(signed_info))
        etree.SubElement(signature, _ds("SignatureValue")).text = base64.b64encode(assinatura).decode("ascii")

        key_info = etree.SubElement(signature, _ds("KeyInfo"))
        x509_data = etree.SubElement(key_info, _ds("X509Data"))
        etree.SubElement(x509_data, _ds("X509Certificate")).text = self.certificado.certificado_der_base64()

        root.append(signature)

        logger.debug(
            "xml_assinado",
            extra={"event": "xml_assinar", "referencia": referencia, "outcome": "success"},
        )
        return etree.tostring(root, encoding="unicode")


def verificar_assinatura(xml_assinado: str, certificado: Optional[x509.Certificate] = None) -> bool:
    """
    Recalcula o digest da referência e confere a SignatureValue contra o
    certificado embutido (ou o informado). Qualquer divergência → False.
    """
    try:
        root = _parse(xml_assinado)
    except etree.XMLSyntaxError:
        return False

    signature = root.find(f".//{_ds('Signature')}")
    if signature is None:
        return False

    reference = signature.find(f"{_ds('SignedInfo')}/{_ds('Reference')}")
    digest_value = signature.findtext(f"{_ds('SignedInfo')}/{_ds('Reference')}/{_ds('DigestValue')}")
    signature_value = signature.findtext(_ds("SignatureValue"))
    if reference is None or not digest_value or not signature_value:
        return False

    referencia = (reference.get("URI") or "").lstrip("#")
    alvos = root.xpath("//*[@Id=$id]", id=referencia)
    if len(alvos) != 1:
        return False
    alvo = alvos[0]

    if signature in alvo.iterdescendants():
        # enveloped dentro do próprio alvo: digest calculado sem a Signature
        alvo = copy.deepcopy(alvo)
        for sig in alvo.iter(_ds("Signature")):
            sig.getparent().remove(sig)
            break

    if _digest(alvo) != digest_value.strip():
        return False

    if certificado is None:
        cert_b64 = signature.findtext(f"{_ds('KeyInfo')}/{_ds('X509Data')}/{_ds('X509Certificate')}")
        if not cert_b64:
            return False
        try:
            certificado = x509.load_der_x509_certificate(base64.b64decode("".join(cert_b64.split())))
        except ValueError:
            return False

    signed_info = signature.find(_ds("SignedInfo"))
    try:
        certificado.public_key().verify(
            base64.b64decode("".join(signature_value.split())),
            canonicalizar(signed_info),
            padding.PKCS1v15(),
            hashes.SHA1(),
        )
    except (InvalidSignature, ValueError):
        return False
    return True
