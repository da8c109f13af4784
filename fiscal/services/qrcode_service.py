# fiscal/services/qrcode_service.py
import hashlib
import logging
import re
from datetime import datetime
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Optional

from fiscal.exceptions import QRGenerationError
from fiscal.sefaz_endpoints import get_qrcode_base_url, tp_amb

logger = logging.getLogger("pdv.fiscal")

VERSAO_QRCODE = "100"


def gerar_qrcode_nfce(
    *,
    chave_acesso: str,
    uf: str,
    ambiente: str,
    data_emissao: datetime,
    valor_total,
    cpf_cnpj_consumidor: Optional[str] = None,
    csc_id: Optional[str] = None,
    csc_token: Optional[str] = None,
) -> str:
    """
    Monta a URL de consulta do QR Code da NFC-e.

    Parâmetros: chNFe, nVersao, tpAmb, dhEmi (epoch em hexadecimal maiúsculo),
    vNF (centavos, truncado), vICMS (sempre 0), digVal, cDest (CPF/CNPJ, opcional).
    cHashQRCode só é anexado quando csc_id E csc_token estão presentes:
    SHA-1 (hex maiúsculo) da query concatenada ao token CSC.
    O token em si nunca vai na URL.
    """
    try:
        centavos = int((Decimal(str(valor_total)) * 100).to_integral_value(rounding=ROUND_DOWN))
        dh_emi = format(int(data_emissao.timestamp()), "X")

        partes = [
            f"chNFe={chave_acesso}",
            f"nVersao={VERSAO_QRCODE}",
            f"tpAmb={tp_amb(ambiente)}",
            f"dhEmi={dh_emi}",
            f"vNF={centavos}",
            "vICMS=0",
            f"digVal={chave_acesso[-1]}",
        ]

        documento = re.sub(r"\D", "", cpf_cnpj_consumidor or "")
        if len(documento) in (11, 14):
            partes.append(f"cDest={documento}")

        query = "&".join(partes)

        if csc_id and csc_token:
            hash_qr = hashlib.sha1(f"{query}{csc_token}".encode("utf-8")).hexdigest().upper()
            query = f"{query}&cHashQRCode={hash_qr}"

        return f"{get_qrcode_base_url(uf, ambiente)}?{query}"

    except (AttributeError, TypeError, ValueError, IndexError, InvalidOperation, OverflowError) as exc:
        logger.warning(
            "nfce_qrcode_erro",
            extra={"event": "nfce_qrcode", "chave_acesso": chave_acesso, "error": str(exc), "outcome": "error"},
        )
        raise QRGenerationError(f"Erro ao gerar QR Code: {exc}") from exc
