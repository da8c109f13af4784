# fiscal/services/cancelamento_service.py

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from django.db import DatabaseError, transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from fiscal.exceptions import DatabaseError as FiscalDatabaseError
from fiscal.exceptions import InvalidTransitionError
from fiscal.models import NfceStatus, TipoOperacao
from fiscal.sefaz_clients import CODIGO_ERRO_INTERNO
from fiscal.sefaz_factory import get_sefaz_client
from fiscal.services.carregamento import (
    SefazClientFactory,
    carregar_certificado_valido,
    get_cupom_do_usuario,
    travar_cupom,
)
from fiscal.services.nfce_state_machine import NfceStateMachine
from fiscal.services.transmissao_service import registrar_transmissao

logger = logging.getLogger("pdv.fiscal")

MOTIVO_MIN = 15
MOTIVO_MAX = 255


@dataclass
class CancelarNfceResult:
    success: bool
    cupom_id: str
    status: str
    motivo: str
    codigo_status: str
    protocolo: Optional[str] = None


def validar_motivo_cancelamento(motivo: Optional[str]) -> str:
    motivo = (motivo or "").strip()
    if not MOTIVO_MIN <= len(motivo) <= MOTIVO_MAX:
        raise ValidationError(
            {
                "code": "FISCAL_4002",
                "message": f"Motivo de cancelamento deve ter entre {MOTIVO_MIN} e {MOTIVO_MAX} caracteres.",
            }
        )
    return motivo


def _verificar_cancelavel(cupom) -> None:
    if not NfceStateMachine.pode_transicionar(cupom.status, NfceStatus.CANCELED):
        logger.warning(
            "nfce_cancelar_status_invalido",
            extra={
                "event": "nfce_cancelar",
                "cupom_id": str(cupom.id),
                "status": cupom.status,
                "outcome": "invalid_transition",
            },
        )
        raise InvalidTransitionError(
            f"NFC-e em status '{cupom.status}' não pode ser cancelada. Somente documentos autorizados."
        )
    if not cupom.protocolo_autorizacao:
        raise InvalidTransitionError("NFC-e autorizada sem protocolo de autorização registrado.")


def cancelar_nfce(
    *,
    user,
    cupom_id,
    motivo: str,
    sefaz_client_factory: Optional[SefazClientFactory] = None,
    agora: Optional[datetime] = None,
) -> CancelarNfceResult:
    """
    Cancela uma NFC-e autorizada.

    Regras principais:
      - Motivo (xJust) entre 15 e 255 caracteres.
      - Só cancela documentos 'authorized'. Qualquer outro status falha com
        InvalidTransitionError ANTES de qualquer chamada à SEFAZ (inclusive
        um segundo cancelamento do mesmo cupom).
      - Exige certificado válido (o pedido de cancelamento é assinado).
      - Registra a transmissão, qualquer que seja o retorno.

    O cupom fica sob lock de linha da verificação do status até a gravação
    do retorno: um cancelamento concorrente espera e falha na verificação.
    """
    motivo = validar_motivo_cancelamento(motivo)
    cupom = get_cupom_do_usuario(user, cupom_id)

    try:
        with transaction.atomic():
            cupom = travar_cupom(cupom)
            _verificar_cancelavel(cupom)

            certificado = carregar_certificado_valido(cupom.configuracao, agora=agora)
            client = (sefaz_client_factory or get_sefaz_client)(certificado)

            resposta = client.cancelar_nfce(
                cupom.chave_acesso,
                cupom.protocolo_autorizacao,
                motivo,
                cupom.uf,
                cupom.ambiente,
            )

            if resposta.success:
                NfceStateMachine.mudar_status(cupom, NfceStatus.CANCELED, motivo=motivo)
                cupom.protocolo_cancelamento = resposta.protocolo
                cupom.motivo_cancelamento = motivo
                cupom.data_hora_cancelamento = timezone.now()

            if resposta.codigo_status != CODIGO_ERRO_INTERNO:
                cupom.codigo_status = resposta.codigo_status

            cupom.save(
                update_fields=[
                    "status",
                    "protocolo_cancelamento",
                    "motivo_cancelamento",
                    "data_hora_cancelamento",
                    "codigo_status",
                    "updated_at",
                ]
            )
            registrar_transmissao(cupom, TipoOperacao.CANCELAMENTO, resposta)
    except DatabaseError as exc:
        logger.exception(
            "nfce_cancelar_erro_persistencia",
            extra={"event": "nfce_cancelar", "cupom_id": str(cupom.id), "error": str(exc)},
        )
        raise FiscalDatabaseError("Erro ao gravar o retorno do cancelamento.") from exc

    logger.info(
        "nfce_cancelar",
        extra={
            "event": "nfce_cancelar",
            "user_id": getattr(user, "id", None),
            "cupom_id": str(cupom.id),
            "chave_acesso": cupom.chave_acesso,
            "codigo_status": resposta.codigo_status,
            "status": cupom.status,
            "outcome": "success" if resposta.success else "failure",
        },
    )

    return CancelarNfceResult(
        success=resposta.success,
        cupom_id=str(cupom.id),
        status=cupom.status,
        motivo=resposta.motivo,
        codigo_status=resposta.codigo_status,
        protocolo=resposta.protocolo,
    )
