# fiscal/services/carregamento.py
"""
Helpers de carga compartilhados pelos services de emissão, consulta,
cancelamento e download: configuração ativa, cupom do usuário e certificado A1.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from django.core.exceptions import ValidationError as DjangoValidationError

from fiscal.certificado import CertificadoA1, carregar_certificado, validar_certificado
from fiscal.exceptions import CertificateError, ConfigurationError, NotFoundError
from fiscal.models import ConfiguracaoFiscal, NfceCupom
from fiscal.sefaz_clients import SefazClientProtocol

logger = logging.getLogger("pdv.fiscal")

# factory(certificado | None) -> client SEFAZ; injetada nos services
SefazClientFactory = Callable[[Optional[CertificadoA1]], SefazClientProtocol]


def get_configuracao_ativa(user) -> ConfiguracaoFiscal:
    config = ConfiguracaoFiscal.objects.filter(owner=user, ativo=True).first()
    if config is None:
        raise ConfigurationError(
            "Configurações fiscais não encontradas ou inativas. Configure a emissão de NFC-e."
        )
    return config


def get_cupom_do_usuario(user, cupom_id) -> NfceCupom:
    try:
        return NfceCupom.objects.select_related("configuracao").get(pk=cupom_id, owner=user)
    except (NfceCupom.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Documento NFC-e não encontrado.") from None


def carregar_certificado_valido(
    config: ConfiguracaoFiscal,
    *,
    agora: Optional[datetime] = None,
) -> CertificadoA1:
    """
    Descriptografa, carrega e valida o A1 da configuração.

    Qualquer problema vira CertificateError (ou subclasse) com mensagem
    acionável para o estabelecimento. Nunca é re-tentado automaticamente.
    """
    certificado = carregar_certificado(
        config.get_certificado_base64(),
        config.get_certificado_senha(),
    )

    validacao = validar_certificado(certificado, agora=agora)
    if not validacao["valid"]:
        logger.warning(
            "certificado_invalido",
            extra={
                "event": "certificado_validar",
                "configuracao_id": str(config.id),
                "errors": validacao["errors"],
                "outcome": "invalid",
            },
        )
        raise CertificateError(
            "Certificado inválido: " + "; ".join(validacao["errors"]),
            erros=validacao["errors"],
        )

    return certificado


def travar_cupom(cupom: NfceCupom) -> NfceCupom:
    """
    Recarrega o cupom sob lock de linha. Deve rodar dentro de
    transaction.atomic(): o status lido aqui é o que vale para a transição.
    """
    return (
        NfceCupom.objects.select_for_update(of=("self",))
        .select_related("configuracao")
        .get(pk=cupom.pk)
    )
