# tests/fiscal/test_nfce_auditoria_logs.py
import logging

import pytest
import requests
from django.urls import reverse

from fiscal.models import TipoOperacao
from fiscal.services.cancelamento_service import cancelar_nfce
from fiscal.services.emissao_service import emitir_nfce
from tests.helpers import retorno_autorizacao, retorno_cancelamento


def _eventos(caplog, mensagem):
    return [r for r in caplog.records if r.name == "pdv.fiscal" and r.getMessage() == mensagem]


@pytest.mark.django_db
def test_emissao_autorizada_gera_trilha_de_auditoria(user, configuracao_fiscal, pedido, sefaz_fake, fiscal_logs):
    session, factory = sefaz_fake
    session.respostas.append(retorno_autorizacao())

    result = emitir_nfce(user=user, pedido_id=pedido.id, sefaz_client_factory=factory)

    reserva = _eventos(fiscal_logs, "nfce_numero_reservado")
    assert len(reserva) == 1
    assert reserva[0].numero == result.numero
    assert reserva[0].outcome == "success"

    pendente = _eventos(fiscal_logs, "nfce_cupom_pendente_criado")
    assert pendente and pendente[0].outcome == "pending"
    assert pendente[0].chave_acesso == result.chave_acesso

    autorizada = _eventos(fiscal_logs, "nfce_emitir_autorizada")
    assert len(autorizada) == 1
    rec = autorizada[0]
    assert rec.levelno == logging.INFO
    assert rec.event == "nfce_emitir"
    assert rec.cupom_id == str(result.cupom_id)
    assert rec.protocolo == result.protocolo
    assert rec.outcome == "authorized"

    transmissao = _eventos(fiscal_logs, "nfce_transmissao_registrada")
    assert len(transmissao) == 1
    assert transmissao[0].tipo_operacao == TipoOperacao.EMISSAO
    assert transmissao[0].outcome == "success"


@pytest.mark.django_db
def test_falha_de_rede_loga_rejeicao_com_999(user, configuracao_fiscal, pedido, sefaz_fake, fiscal_logs):
    session, factory = sefaz_fake
    session.erro = requests.ConnectionError("sem rota")

    emitir_nfce(user=user, pedido_id=pedido.id, sefaz_client_factory=factory)

    rejeitada = _eventos(fiscal_logs, "nfce_emitir_rejeitada")
    assert len(rejeitada) == 1
    assert rejeitada[0].levelno == logging.WARNING
    assert rejeitada[0].codigo_status == "999"
    assert rejeitada[0].outcome == "rejected"

    transmissao = _eventos(fiscal_logs, "nfce_transmissao_registrada")
    assert transmissao[0].outcome == "failure"


@pytest.mark.django_db
def test_cancelamento_loga_transicao_de_status(user, cupom_autorizado, sefaz_fake, fiscal_logs):
    session, factory = sefaz_fake
    session.respostas.append(retorno_cancelamento(cupom_autorizado.chave_acesso))

    cancelar_nfce(
        user=user,
        cupom_id=cupom_autorizado.id,
        motivo="Cliente desistiu da compra no caixa",
        sefaz_client_factory=factory,
    )

    transicoes = _eventos(fiscal_logs, "nfce_status_transicao")
    assert any(r.status_anterior == "authorized" and r.status_novo == "canceled" for r in transicoes)

    transmissao = _eventos(fiscal_logs, "nfce_transmissao_registrada")
    assert transmissao[-1].tipo_operacao == TipoOperacao.CANCELAMENTO


@pytest.mark.django_db
def test_view_loga_erro_de_negocio_como_warning(api_client, pedido, fiscal_logs):
    # sem configuração fiscal -> 409
    resp = api_client.post(reverse("fiscal:nfce_emitir"), {"pedido_id": str(pedido.id)}, format="json")

    assert resp.status_code == 409
    registros = [r for r in fiscal_logs.records if getattr(r, "event", None) == "nfce_emitir"]
    assert registros
    assert registros[-1].levelno == logging.WARNING
