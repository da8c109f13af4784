# fiscal/services/download_service.py

import logging

from fiscal.exceptions import NotAvailableError
from fiscal.services.carregamento import get_cupom_do_usuario

logger = logging.getLogger("pdv.fiscal")


def baixar_xml(*, user, cupom_id) -> str:
    """XML assinado/autorizado; se nunca autorizado, o XML gerado sem assinatura."""
    cupom = get_cupom_do_usuario(user, cupom_id)

    xml = cupom.xml_autorizado or cupom.xml_content
    if not xml:
        raise NotAvailableError("XML não disponível para este documento.")

    logger.info(
        "nfce_download_xml",
        extra={
            "event": "nfce_download_xml",
            "cupom_id": str(cupom.id),
            "assinado": bool(cupom.xml_autorizado),
            "outcome": "success",
        },
    )
    return xml
