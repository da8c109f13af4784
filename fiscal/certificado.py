# fiscal/certificado.py
"""
Carga e validação do certificado digital A1 (PKCS#12 .pfx/.p12).

O bundle chega em base64 (descriptografado da ConfiguracaoFiscal) e a chave
privada vive apenas em memória, dentro do CertificadoA1 devolvido.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, List, Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from fiscal.exceptions import CertificateContentError, CertificateFormatError

logger = logging.getLogger("pdv.fiscal")

CNPJ_SUBJECT_RE = re.compile(r"CNPJ:\s*(\d{2}\.\d{3}\.\d{3}/\d{4}-\d{2})")

MSG_AINDA_NAO_VALIDO = "Certificado ainda não é válido"
MSG_EXPIRADO = "Certificado expirado"
MSG_SEM_CNPJ = "Certificado não contém CNPJ válido"


@dataclass(frozen=True)
class CertificadoA1:
    certificado: x509.Certificate
    chave_privada: Any
    numero_serie: str
    valido_de: datetime
    valido_ate: datetime
    subject: str
    issuer: str
    subject_completo: str

    @property
    def cnpj(self) -> Optional[str]:
        """CNPJ (somente dígitos) declarado no subject, se houver."""
        for texto in (self.subject, self.subject_completo):
            match = CNPJ_SUBJECT_RE.search(texto or "")
            if match:
                return re.sub(r"\D", "", match.group(1))
        return None

    def certificado_der_base64(self) -> str:
        der = self.certificado.public_bytes(serialization.Encoding.DER)
        return base64.b64encode(der).decode("ascii")

    def __repr__(self):
        # nunca expor a chave privada em logs/tracebacks
        return f"CertificadoA1(subject={self.subject!r}, serie={self.numero_serie}, ate={self.valido_ate:%Y-%m-%d})"


def _common_name(name: x509.Name) -> str:
    attrs = name.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attrs:
        return ""
    return str(attrs[0].value)


def _decode_base64(conteudo: str) -> bytes:
    limpo = "".join((conteudo or "").split())
    if not limpo:
        raise CertificateFormatError("Certificado não informado.")
    try:
        return base64.b64decode(limpo, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise CertificateFormatError(f"Erro ao carregar certificado: base64 inválido ({exc}).") from exc


def carregar_certificado(pfx_base64: str, senha: str) -> CertificadoA1:
    """
    Decodifica um PKCS#12 em base64 e extrai certificado + chave privada.

    Erros:
      - CertificateFormatError: base64 inválido, estrutura PKCS#12 inválida ou senha errada.
      - CertificateContentError: bundle sem certificado ou sem chave privada.
    """
    pfx_bytes = _decode_base64(pfx_base64)
    senha_bytes = senha.encode("utf-8") if senha else None

    try:
        chave, certificado, _adicionais = pkcs12.load_key_and_certificates(pfx_bytes, senha_bytes)
    except (ValueError, TypeError) as exc:
        logger.warning(
            "certificado_formato_invalido",
            extra={"event": "certificado_carregar", "outcome": "format_error"},
        )
        raise CertificateFormatError(
            "Erro ao carregar certificado: arquivo PKCS#12 inválido ou senha incorreta."
        ) from exc

    if certificado is None:
        raise CertificateContentError("Certificado não encontrado no arquivo PKCS#12.")
    if chave is None:
        raise CertificateContentError("Chave privada não encontrada no arquivo PKCS#12.")

    cert = CertificadoA1(
        certificado=certificado,
        chave_privada=chave,
        numero_serie=format(certificado.serial_number, "x"),
        valido_de=certificado.not_valid_before_utc,
        valido_ate=certificado.not_valid_after_utc,
        subject=_common_name(certificado.subject),
        issuer=_common_name(certificado.issuer),
        subject_completo=certificado.subject.rfc4514_string(),
    )

    logger.debug(
        "certificado_carregado",
        extra={
            "event": "certificado_carregar",
            "numero_serie": cert.numero_serie,
            "valido_ate": cert.valido_ate.isoformat(),
            "outcome": "success",
        },
    )
    return cert


def validar_certificado(cert: CertificadoA1, agora: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Valida janela de validade e presença de CNPJ no subject.

    Nunca lança: devolve {"valid": bool, "errors": [...]} com uma mensagem
    específica por regra violada.
    """
    agora = agora or datetime.now(dt_timezone.utc)
    errors: List[str] = []

    if agora < cert.valido_de:
        errors.append(f"{MSG_AINDA_NAO_VALIDO} (válido a partir de {cert.valido_de:%d/%m/%Y %H:%M} UTC)")

    if agora > cert.valido_ate:
        errors.append(f"{MSG_EXPIRADO} (válido até {cert.valido_ate:%d/%m/%Y %H:%M} UTC)")

    if cert.cnpj is None:
        errors.append(MSG_SEM_CNPJ)

    return {"valid": not errors, "errors": errors}
