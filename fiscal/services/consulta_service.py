# fiscal/services/consulta_service.py

import logging
from dataclasses import dataclass
from typing import Optional

from django.db import DatabaseError, transaction
from django.utils import timezone

from fiscal.exceptions import DatabaseError as FiscalDatabaseError
from fiscal.models import NfceStatus, TipoOperacao
from fiscal.sefaz_clients import CODIGO_ERRO_INTERNO
from fiscal.sefaz_factory import get_sefaz_client
from fiscal.services.carregamento import SefazClientFactory, get_cupom_do_usuario, travar_cupom
from fiscal.services.emissao_service import gerar_qrcode_para_cupom
from fiscal.services.nfce_state_machine import NfceStateMachine
from fiscal.services.transmissao_service import registrar_transmissao

logger = logging.getLogger("pdv.fiscal")

# cStat da consulta → status do cupom. Códigos fora da tabela não mudam o status.
STATUS_POR_CODIGO = {
    "100": NfceStatus.AUTHORIZED,
    "150": NfceStatus.AUTHORIZED,
    "101": NfceStatus.CANCELED,
    "135": NfceStatus.CANCELED,
    "151": NfceStatus.CANCELED,
    "155": NfceStatus.CANCELED,
    # uso denegado
    "110": NfceStatus.REJECTED,
    "205": NfceStatus.REJECTED,
    "301": NfceStatus.REJECTED,
    "302": NfceStatus.REJECTED,
    "303": NfceStatus.REJECTED,
}


def _xml_assinado_da_emissao(cupom) -> Optional[str]:
    """NFe assinada enviada na emissão (gravada na trilha mesmo sem resposta da SEFAZ)."""
    return (
        cupom.transmissoes
        .filter(tipo_operacao=TipoOperacao.EMISSAO)
        .exclude(xml_enviado__isnull=True)
        .order_by("-created_at")
        .values_list("xml_enviado", flat=True)
        .first()
    )


@dataclass
class ConsultarNfceResult:
    """
    success indica que a ida-e-volta à SEFAZ se completou (cStat != 999),
    não que o documento esteja autorizado: para isso, olhar `status`.
    """

    success: bool
    cupom_id: str
    status: str
    protocolo: Optional[str]
    motivo: str
    codigo_status: str


def consultar_nfce(
    *,
    user,
    cupom_id,
    sefaz_client_factory: Optional[SefazClientFactory] = None,
) -> ConsultarNfceResult:
    """
    Reconsulta a situação do cupom na SEFAZ.

    Regras:
      - Não exige certificado (consSitNFe não é assinado).
      - Atualiza o status quando a SEFAZ diverge do gravado E a transição
        é legal (ex.: 'rejected' por falha de comunicação → 'authorized').
      - Cupom autorizado sem QR Code tem o QR Code regerado aqui.
      - Uma linha em NfceTransmissao sempre.

    O retorno é aplicado sobre o cupom relido sob lock: uma mudança gravada
    por outra requisição durante a chamada à SEFAZ (ex.: cancelamento) não
    é sobrescrita.
    """
    cupom = get_cupom_do_usuario(user, cupom_id)

    client = (sefaz_client_factory or get_sefaz_client)(None)
    resposta = client.consultar_nfce(cupom.chave_acesso, cupom.uf, cupom.ambiente)

    status_sefaz = STATUS_POR_CODIGO.get(resposta.codigo_status)

    try:
        with transaction.atomic():
            cupom = travar_cupom(cupom)
            status_anterior = cupom.status
            divergente = False

            if status_sefaz and status_sefaz != cupom.status:
                if NfceStateMachine.pode_transicionar(cupom.status, status_sefaz):
                    NfceStateMachine.mudar_status(
                        cupom,
                        status_sefaz,
                        motivo=resposta.motivo,
                        extra_context={"origem": "consulta"},
                    )
                    if status_sefaz == NfceStatus.AUTHORIZED:
                        cupom.protocolo_autorizacao = resposta.protocolo or cupom.protocolo_autorizacao
                        cupom.data_hora_autorizacao = cupom.data_hora_autorizacao or timezone.now()
                        cupom.motivo_rejeicao = None
                        cupom.xml_autorizado = cupom.xml_autorizado or _xml_assinado_da_emissao(cupom)
                    elif status_sefaz == NfceStatus.CANCELED:
                        cupom.data_hora_cancelamento = cupom.data_hora_cancelamento or timezone.now()
                    elif status_sefaz == NfceStatus.REJECTED:
                        cupom.motivo_rejeicao = resposta.motivo
                else:
                    divergente = True
                    logger.warning(
                        "nfce_consulta_divergencia",
                        extra={
                            "event": "nfce_consultar",
                            "cupom_id": str(cupom.id),
                            "status_local": cupom.status,
                            "status_sefaz": status_sefaz,
                            "codigo_status": resposta.codigo_status,
                            "outcome": "divergent",
                        },
                    )

            if cupom.status == NfceStatus.AUTHORIZED and not cupom.qr_code_url:
                cupom.qr_code_url = gerar_qrcode_para_cupom(cupom, cupom.configuracao)

            # cStat de divergência ilegal não substitui o do status gravado
            if resposta.codigo_status != CODIGO_ERRO_INTERNO and not divergente:
                cupom.codigo_status = resposta.codigo_status

            cupom.save(
                update_fields=[
                    "status",
                    "protocolo_autorizacao",
                    "data_hora_autorizacao",
                    "xml_autorizado",
                    "data_hora_cancelamento",
                    "motivo_rejeicao",
                    "qr_code_url",
                    "codigo_status",
                    "updated_at",
                ]
            )
            registrar_transmissao(cupom, TipoOperacao.CONSULTA, resposta)
    except DatabaseError as exc:
        logger.exception(
            "nfce_consultar_erro_persistencia",
            extra={"event": "nfce_consultar", "cupom_id": str(cupom.id), "error": str(exc)},
        )
        raise FiscalDatabaseError("Erro ao gravar o resultado da consulta.") from exc

    logger.info(
        "nfce_consultar",
        extra={
            "event": "nfce_consultar",
            "user_id": getattr(user, "id", None),
            "cupom_id": str(cupom.id),
            "chave_acesso": cupom.chave_acesso,
            "status_anterior": status_anterior,
            "status": cupom.status,
            "codigo_status": resposta.codigo_status,
            "outcome": "success" if resposta.codigo_status != CODIGO_ERRO_INTERNO else "transmission_error",
        },
    )

    return ConsultarNfceResult(
        success=resposta.codigo_status != CODIGO_ERRO_INTERNO,
        cupom_id=str(cupom.id),
        status=cupom.status,
        protocolo=cupom.protocolo_autorizacao,
        motivo=resposta.motivo,
        codigo_status=resposta.codigo_status,
    )
