# fiscal/services/emissao_service.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_DOWN, Decimal
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from fiscal.exceptions import DatabaseError as FiscalDatabaseError
from fiscal.exceptions import NotFoundError, QRGenerationError, SigningError
from fiscal.models import ConfiguracaoFiscal, NfceCupom, NfceItem, NfceStatus, TipoOperacao
from fiscal.sefaz_clients import SefazResponse
from fiscal.sefaz_factory import get_sefaz_client
from fiscal.services.carregamento import (
    SefazClientFactory,
    carregar_certificado_valido,
    get_configuracao_ativa,
)
from fiscal.services.chave_acesso_service import gerar_chave_acesso, gerar_codigo_numerico
from fiscal.services.nfce_state_machine import NfceStateMachine
from fiscal.services.numero_service import reservar_proximo_numero
from fiscal.services.qrcode_service import gerar_qrcode_nfce
from fiscal.services.transmissao_service import registrar_transmissao
from fiscal.services.xml_service import gerar_xml_nfce
from fiscal.uf import CLASSIFICACAO_PADRAO
from pedidos.models import Pedido

logger = logging.getLogger("pdv.fiscal")

CENTAVO = Decimal("0.01")


# ---------------------------------------------------------------------------
# DTO de saída
# ---------------------------------------------------------------------------

@dataclass
class EmitirNfceResult:
    """
    DTO de retorno da emissão de NFC-e.

    success=True somente quando a SEFAZ autorizou (status 'authorized').
    Rejeição e falha de comunicação voltam success=False com o motivo.
    """

    success: bool
    cupom_id: str
    numero: int
    serie: int
    chave_acesso: str
    status: str

    protocolo: Optional[str] = None
    codigo_status: Optional[str] = None
    motivo: Optional[str] = None
    qr_code_url: Optional[str] = None


def _build_result_from_cupom(cupom: NfceCupom, motivo: Optional[str] = None) -> EmitirNfceResult:
    return EmitirNfceResult(
        success=cupom.status == NfceStatus.AUTHORIZED,
        cupom_id=str(cupom.id),
        numero=cupom.numero,
        serie=cupom.serie,
        chave_acesso=cupom.chave_acesso,
        status=cupom.status,
        protocolo=cupom.protocolo_autorizacao,
        codigo_status=cupom.codigo_status,
        motivo=motivo or cupom.motivo_rejeicao,
        qr_code_url=cupom.qr_code_url,
    )


# ---------------------------------------------------------------------------
# Helpers internos
# ---------------------------------------------------------------------------

def _aliquota_aproximada() -> Decimal:
    return Decimal(str(getattr(settings, "FISCAL_ALIQUOTA_APROXIMADA", "0.0765")))


def _ratear_desconto(valores: List[Decimal], desconto: Decimal) -> List[Decimal]:
    """
    Distribui o desconto do pedido proporcionalmente entre os itens.

    Cada parcela é truncada no centavo; os centavos que sobram vão, um a um,
    para os itens com maior fração descartada, sem passar do valor do item.
    A soma das parcelas é exatamente o desconto e nenhuma fica negativa.
    """
    total = sum(valores, Decimal("0.00"))
    desconto = min(desconto, total)
    if desconto <= 0:
        return [Decimal("0.00")] * len(valores)

    exatos = [desconto * v / total for v in valores]
    rateio = [e.quantize(CENTAVO, rounding=ROUND_DOWN) for e in exatos]
    sobra = desconto - sum(rateio, Decimal("0.00"))

    ordem = sorted(range(len(valores)), key=lambda i: exatos[i] - rateio[i], reverse=True)
    while sobra > 0:
        for i in ordem:
            if sobra <= 0:
                break
            if rateio[i] + CENTAVO <= valores[i]:
                rateio[i] += CENTAVO
                sobra -= CENTAVO
    return rateio


def _get_pedido(user, pedido_id) -> Pedido:
    try:
        pedido = Pedido.objects.get(pk=pedido_id, owner=user)
    except (Pedido.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError("Pedido não encontrado.") from None

    if not pedido.itens.exists():
        raise ValidationError({"code": "FISCAL_4004", "message": "Pedido sem itens não pode ser emitido."})
    return pedido


def gerar_qrcode_para_cupom(cupom: NfceCupom, config: ConfiguracaoFiscal) -> Optional[str]:
    """
    QR Code do cupom autorizado. Falha aqui NÃO invalida a autorização:
    loga e devolve None para ser gerado depois (ex.: na próxima consulta).
    """
    try:
        return gerar_qrcode_nfce(
            chave_acesso=cupom.chave_acesso,
            uf=cupom.uf,
            ambiente=cupom.ambiente,
            data_emissao=cupom.data_hora_emissao,
            valor_total=cupom.valor_total,
            cpf_cnpj_consumidor=cupom.consumidor_cpf_cnpj,
            csc_id=config.csc_id,
            csc_token=config.csc_token,
        )
    except QRGenerationError as exc:
        logger.warning(
            "nfce_qrcode_pendente",
            extra={
                "event": "nfce_qrcode",
                "cupom_id": str(cupom.id),
                "chave_acesso": cupom.chave_acesso,
                "error": exc.message,
                "outcome": "deferred",
            },
        )
        return None


@transaction.atomic
def _criar_cupom_pendente(
    *,
    user,
    config: ConfiguracaoFiscal,
    pedido: Pedido,
    numero: int,
    serie: int,
    chave_acesso: str,
    codigo_numerico: str,
    data_emissao: datetime,
    consumidor: Dict[str, Any],
    observacoes: Optional[str],
) -> tuple[NfceCupom, List[NfceItem]]:
    """
    Cupom 'pending' + itens numa única transação, antes de transmitir:
    garante registro de auditoria mesmo se a comunicação falhar.
    """
    itens_pedido = list(pedido.itens.all())
    valores = [item.total for item in itens_pedido]
    soma = sum(valores, Decimal("0.00"))

    desconto = min(max(soma - pedido.total, Decimal("0.00")), soma)
    if soma < pedido.total:
        logger.warning(
            "nfce_total_pedido_divergente",
            extra={
                "event": "nfce_emitir",
                "pedido_id": str(pedido.id),
                "total_pedido": str(pedido.total),
                "soma_itens": str(soma),
            },
        )
    valor_total = soma - desconto
    descontos = _ratear_desconto(valores, desconto)

    cupom = NfceCupom.objects.create(
        configuracao=config,
        owner=user,
        pedido=pedido,
        numero=numero,
        serie=serie,
        chave_acesso=chave_acesso,
        codigo_numerico=codigo_numerico,
        valor_total=valor_total,
        valor_desconto=desconto,
        valor_tributos=(valor_total * _aliquota_aproximada()).quantize(CENTAVO),
        consumidor_nome=consumidor.get("nome") or None,
        consumidor_cpf_cnpj=consumidor.get("cpf_cnpj") or None,
        consumidor_email=consumidor.get("email") or None,
        observacoes=observacoes or None,
        status=NfceStatus.PENDING,
        ambiente=config.ambiente,
        uf=config.uf.upper(),
        data_hora_emissao=data_emissao,
    )

    classificacao = CLASSIFICACAO_PADRAO
    itens: List[NfceItem] = []
    for idx, (item, valor, desconto_item) in enumerate(zip(itens_pedido, valores, descontos), start=1):
        itens.append(
            NfceItem.objects.create(
                cupom=cupom,
                numero_item=idx,
                produto_id=item.produto_id,
                codigo_produto=item.produto_id or f"{idx:06d}",
                descricao=item.nome,
                ncm=classificacao.ncm,
                cfop=classificacao.cfop,
                unidade=classificacao.unidade,
                quantidade=item.quantidade,
                valor_unitario=item.preco_unitario,
                valor_total=valor,
                valor_desconto=desconto_item,
                cst_icms=classificacao.csosn_icms,
                cst_pis=classificacao.cst_pis,
                cst_cofins=classificacao.cst_cofins,
            )
        )

    return cupom, itens


def _aplicar_retorno_autorizacao(
    cupom: NfceCupom,
    config: ConfiguracaoFiscal,
    resposta: SefazResponse,
) -> None:
    """Grava o desfecho da autorização + trilha de transmissão, atomicamente."""
    try:
        with transaction.atomic():
            if resposta.success:
                NfceStateMachine.mudar_status(cupom, NfceStatus.AUTHORIZED, motivo=resposta.motivo)
                cupom.protocolo_autorizacao = resposta.protocolo
                cupom.data_hora_autorizacao = timezone.now()
                cupom.xml_autorizado = resposta.xml_enviado
                cupom.motivo_rejeicao = None
                cupom.qr_code_url = gerar_qrcode_para_cupom(cupom, config)
            else:
                NfceStateMachine.mudar_status(cupom, NfceStatus.REJECTED, motivo=resposta.motivo)
                cupom.motivo_rejeicao = resposta.motivo

            cupom.codigo_status = resposta.codigo_status
            cupom.save(
                update_fields=[
                    "status",
                    "protocolo_autorizacao",
                    "data_hora_autorizacao",
                    "xml_autorizado",
                    "motivo_rejeicao",
                    "qr_code_url",
                    "codigo_status",
                    "updated_at",
                ]
            )
            registrar_transmissao(cupom, TipoOperacao.EMISSAO, resposta)
    except DatabaseError as exc:
        logger.exception(
            "nfce_emitir_erro_persistencia",
            extra={"event": "nfce_emitir", "cupom_id": str(cupom.id), "error": str(exc)},
        )
        raise FiscalDatabaseError("Erro ao gravar o retorno da SEFAZ. Consulte a NFC-e para reconciliar.") from exc


# ---------------------------------------------------------------------------
# Service principal
# ---------------------------------------------------------------------------

def emitir_nfce(
    *,
    user,
    pedido_id,
    consumidor: Optional[Dict[str, Any]] = None,
    observacoes: Optional[str] = None,
    sefaz_client_factory: Optional[SefazClientFactory] = None,
    agora: Optional[datetime] = None,
) -> EmitirNfceResult:
    """
    Emite a NFC-e de um pedido.

    Fluxo:
      1) Configuração fiscal ativa do usuário (ConfigurationError).
      2) Pedido do mesmo usuário (NotFoundError).
      3) Certificado A1 carregado e válido (CertificateError), antes de
         consumir número ou criar qualquer registro.
      4) Número reservado atomicamente e confirmado.
      5) Chave de acesso + cupom 'pending' + itens (mesma transação).
      6) XML gerado e transmitido (o client assina).
      7) 'authorized' (protocolo, XML assinado, QR Code) ou 'rejected' (motivo).
      8) Uma linha em NfceTransmissao, qualquer que seja o desfecho.

    Sem retry automático: falha de comunicação vira 'rejected' com cStat 999
    e pode ser reconciliada depois via consulta.
    """
    consumidor = consumidor or {}
    agora = agora or timezone.now()

    config = get_configuracao_ativa(user)
    pedido = _get_pedido(user, pedido_id)
    certificado = carregar_certificado_valido(config, agora=agora)

    reserva = reservar_proximo_numero(config.id)

    codigo_numerico = gerar_codigo_numerico()
    chave_acesso = gerar_chave_acesso(
        uf=config.uf,
        data_emissao=agora,
        cnpj=config.cnpj,
        serie=reserva.serie,
        numero=reserva.numero,
        codigo_numerico=codigo_numerico,
    )

    cupom, itens = _criar_cupom_pendente(
        user=user,
        config=config,
        pedido=pedido,
        numero=reserva.numero,
        serie=reserva.serie,
        chave_acesso=chave_acesso,
        codigo_numerico=codigo_numerico,
        data_emissao=agora,
        consumidor=consumidor,
        observacoes=observacoes,
    )

    log_ctx = {
        "event": "nfce_emitir",
        "user_id": getattr(user, "id", None),
        "cupom_id": str(cupom.id),
        "pedido_id": str(pedido.id),
        "numero": cupom.numero,
        "serie": cupom.serie,
        "chave_acesso": chave_acesso,
        "uf": cupom.uf,
        "ambiente": cupom.ambiente,
    }
    logger.info("nfce_cupom_pendente_criado", extra={**log_ctx, "outcome": "pending"})

    xml = gerar_xml_nfce(cupom, itens, config)
    cupom.xml_content = xml
    cupom.save(update_fields=["xml_content", "updated_at"])

    client = (sefaz_client_factory or get_sefaz_client)(certificado)
    try:
        resposta = client.enviar_nfce(xml, cupom.uf, cupom.ambiente)
    except SigningError as exc:
        # defeito de código: cupom permanece 'pending' para consulta/reprocesso
        logger.error("nfce_emitir_erro_assinatura", extra={**log_ctx, "error": exc.message, "outcome": "signing_error"})
        raise

    _aplicar_retorno_autorizacao(cupom, config, resposta)

    if resposta.success:
        logger.info(
            "nfce_emitir_autorizada",
            extra={**log_ctx, "protocolo": cupom.protocolo_autorizacao, "outcome": "authorized"},
        )
    else:
        logger.warning(
            "nfce_emitir_rejeitada",
            extra={
                **log_ctx,
                "codigo_status": resposta.codigo_status,
                "motivo": resposta.motivo,
                "outcome": "rejected",
            },
        )

    return _build_result_from_cupom(cupom, motivo=resposta.motivo)
