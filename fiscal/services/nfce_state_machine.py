# fiscal/services/nfce_state_machine.py

from __future__ import annotations

import logging
from typing import Iterable

from fiscal.exceptions import InvalidTransitionError
from fiscal.models import NfceCupom, NfceStatus

logger = logging.getLogger("pdv.fiscal")


# Matriz de transições permitidas do cupom NFC-e:
# - PENDING: recém-criado, aguardando retorno da SEFAZ
# - AUTHORIZED / REJECTED: desfecho da autorização
# - CANCELED: terminal, só a partir de AUTHORIZED
TRANSICOES_VALIDAS: dict[str, set[str]] = {
    NfceStatus.PENDING: {
        NfceStatus.AUTHORIZED,
        NfceStatus.REJECTED,
    },

    # Rejeitada só volta para AUTHORIZED por reconciliação via consulta
    # (ex.: falha de comunicação no envio, mas a SEFAZ autorizou).
    NfceStatus.REJECTED: {
        NfceStatus.AUTHORIZED,
    },

    NfceStatus.AUTHORIZED: {
        NfceStatus.CANCELED,
    },

    NfceStatus.CANCELED: set(),
}


class NfceStateMachine:
    """
    ÚNICO ponto autorizado a trocar o status do NfceCupom.
    """

    @classmethod
    def pode_transicionar(cls, status_atual: str, novo_status: str) -> bool:
        permitidos: Iterable[str] = TRANSICOES_VALIDAS.get(status_atual, set())
        return novo_status in permitidos

    @classmethod
    def mudar_status(
        cls,
        cupom: NfceCupom,
        novo_status: str,
        *,
        motivo: str | None = None,
        extra_context: dict | None = None,
    ) -> None:
        """
        - Valida se a transição é permitida (baseado no status atual).
        - É idempotente (se já estiver no status solicitado, não faz nada).
        - NÃO salva: o service grava status + campos de retorno juntos.
        """
        status_atual = cupom.status

        if status_atual == novo_status:
            logger.debug(
                "nfce_status_idempotente",
                extra={
                    "event": "nfce_status_idempotente",
                    "cupom_id": str(cupom.id),
                    "status_atual": status_atual,
                },
            )
            return

        if not cls.pode_transicionar(status_atual, novo_status):
            raise InvalidTransitionError(
                f"Transição de '{status_atual}' para '{novo_status}' não é permitida para a NFC-e {cupom.numero}."
            )

        cupom.status = novo_status

        context = {
            "event": "nfce_status_transicao",
            "cupom_id": str(cupom.id),
            "chave_acesso": cupom.chave_acesso,
            "status_anterior": status_atual,
            "status_novo": novo_status,
            "motivo": motivo,
        }
        if extra_context:
            context.update(extra_context)

        logger.info("nfce_status_transicao", extra=context)
