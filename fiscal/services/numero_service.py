# fiscal/services/numero_service.py
import logging
from dataclasses import dataclass

from django.db import transaction
from django.db.models import F

from fiscal.exceptions import ConfigurationError
from fiscal.models import ConfiguracaoFiscal

logger = logging.getLogger("pdv.fiscal")


@dataclass
class ReservaNumeroResult:
    numero: int
    serie: int
    configuracao_id: str


def reservar_proximo_numero(configuracao_id) -> ReservaNumeroResult:
    """
    Fetch-and-increment atômico do número da NFC-e na configuração fiscal.

    Regras:
      - UPDATE ... SET nfce_proximo_numero = nfce_proximo_numero + 1 via F():
        o incremento acontece no banco, sob o lock de escrita da linha, e
        emissões concorrentes da mesma série serializam aqui.
      - A leitura do valor ocorre na MESMA transação do incremento.
      - O bloco é confirmado antes da transmissão: um número consumido nunca
        é devolvido, mesmo que a emissão falhe depois (sem reuso na série).
    """
    with transaction.atomic():
        atualizados = (
            ConfiguracaoFiscal.objects
            .filter(pk=configuracao_id, ativo=True)
            .update(nfce_proximo_numero=F("nfce_proximo_numero") + 1)
        )
        if not atualizados:
            raise ConfigurationError("Configuração fiscal não encontrada ou inativa para numeração.")

        config = ConfiguracaoFiscal.objects.only("id", "nfce_serie", "nfce_proximo_numero").get(pk=configuracao_id)

    numero = config.nfce_proximo_numero - 1

    logger.info(
        "nfce_numero_reservado",
        extra={
            "event": "nfce_reservar_numero",
            "configuracao_id": str(config.id),
            "serie": config.nfce_serie,
            "numero": numero,
            "outcome": "success",
        },
    )

    return ReservaNumeroResult(
        numero=numero,
        serie=config.nfce_serie,
        configuracao_id=str(config.id),
    )
