# fiscal/services/transmissao_service.py
import logging

from fiscal.models import NfceCupom, NfceTransmissao
from fiscal.sefaz_clients import SefazResponse

logger = logging.getLogger("pdv.fiscal")


def registrar_transmissao(cupom: NfceCupom, tipo_operacao: str, resposta: SefazResponse) -> NfceTransmissao:
    """Grava uma linha da trilha de auditoria por ida-e-volta à SEFAZ."""
    transmissao = NfceTransmissao.objects.create(
        cupom=cupom,
        tipo_operacao=tipo_operacao,
        xml_enviado=resposta.xml_enviado,
        xml_retorno=resposta.xml_retorno or None,
        codigo_status=resposta.codigo_status,
        motivo=resposta.motivo,
        protocolo=resposta.protocolo,
        sucesso=resposta.success,
    )

    logger.info(
        "nfce_transmissao_registrada",
        extra={
            "event": "nfce_transmissao",
            "cupom_id": str(cupom.id),
            "tipo_operacao": tipo_operacao,
            "codigo_status": resposta.codigo_status,
            "outcome": "success" if resposta.success else "failure",
        },
    )
    return transmissao
