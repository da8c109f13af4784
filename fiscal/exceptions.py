# fiscal/exceptions.py
"""
Taxonomia de erros do núcleo fiscal NFC-e.

Todas as exceções são APIException do DRF com detail no formato padrão do
módulo fiscal: {"code": "FISCAL_xxxx", "message": "..."}. Assim as views só
precisam relançar, e o handler do DRF devolve o status HTTP correto.

Rejeição da SEFAZ NÃO é exceção: é um desfecho de negócio gravado como
status 'rejected' no cupom.
"""

from __future__ import annotations

from typing import List, Optional

from rest_framework import status
from rest_framework.exceptions import APIException


class FiscalError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    codigo = "FISCAL_5000"
    default_detail = "Erro no processamento fiscal."

    def __init__(self, message: Optional[str] = None, *, codigo: Optional[str] = None):
        self.message = message or str(self.default_detail)
        if codigo:
            self.codigo = codigo
        super().__init__(detail={"code": self.codigo, "message": self.message})


class ConfigurationError(FiscalError):
    """Nenhuma configuração fiscal ativa para o estabelecimento."""

    status_code = status.HTTP_409_CONFLICT
    codigo = "FISCAL_1001"
    default_detail = "Configurações fiscais não encontradas ou inativas."


class NotFoundError(FiscalError):
    status_code = status.HTTP_404_NOT_FOUND
    codigo = "FISCAL_4040"
    default_detail = "Registro não encontrado."


class NotAvailableError(FiscalError):
    status_code = status.HTTP_404_NOT_FOUND
    codigo = "FISCAL_4041"
    default_detail = "XML não disponível."


class InvalidTransitionError(FiscalError):
    """Transição de status proibida pela máquina de estados do cupom."""

    status_code = status.HTTP_409_CONFLICT
    codigo = "FISCAL_4003"
    default_detail = "Transição de status não permitida para o documento."


# ---------------------------------------------------------------------------
# Certificado A1
# ---------------------------------------------------------------------------


class CertificateError(FiscalError):
    """
    Falha de certificado: carga, senha, validade ou subject sem CNPJ.

    `erros` guarda a lista detalhada devolvida por validar_certificado().
    """

    status_code = status.HTTP_403_FORBIDDEN
    codigo = "FISCAL_3001"
    default_detail = "Certificado digital inválido."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        codigo: Optional[str] = None,
        erros: Optional[List[str]] = None,
    ):
        self.erros = list(erros or [])
        super().__init__(message, codigo=codigo)


class CertificateFormatError(CertificateError):
    """Base64 inválido, estrutura PKCS#12 inválida ou senha incorreta."""

    codigo = "FISCAL_3002"
    default_detail = "Erro ao carregar certificado: formato inválido ou senha incorreta."


class CertificateContentError(CertificateError):
    """PKCS#12 sem certificado ou sem chave privada."""

    codigo = "FISCAL_3003"
    default_detail = "Certificado não contém certificado e chave privada."


# ---------------------------------------------------------------------------
# Assinatura / transmissão / QR Code
# ---------------------------------------------------------------------------


class SigningError(FiscalError):
    """XML alvo ausente/ambíguo ou chave privada inutilizável (defeito de código)."""

    codigo = "FISCAL_5002"
    default_detail = "Erro ao assinar XML."


class TransmissionError(FiscalError):
    """
    Falha de rede/HTTP na comunicação com a SEFAZ.

    Uso interno do SefazClient: é sempre convertida em SefazResponse com
    codigo_status='999' antes de sair do client.
    """

    status_code = status.HTTP_502_BAD_GATEWAY
    codigo = "FISCAL_5003"
    default_detail = "Erro de comunicação com a SEFAZ."


class QRGenerationError(FiscalError):
    codigo = "FISCAL_5004"
    default_detail = "Erro ao gerar QR Code."


class DatabaseError(FiscalError):
    """Falha de persistência ao gravar o resultado de uma operação fiscal."""

    codigo = "FISCAL_5005"
    default_detail = "Erro ao gravar dados fiscais."
