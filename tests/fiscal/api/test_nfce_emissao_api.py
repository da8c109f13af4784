# tests/fiscal/api/test_nfce_emissao_api.py
import uuid

import pytest
from django.urls import reverse

from fiscal.models import NfceCupom, NfceStatus
from tests.helpers import criar_configuracao_fiscal, gerar_certificado_expirado

API_URL = "/api/v1/fiscal/nfce/emitir/"


@pytest.fixture(autouse=True)
def _sefaz_mock(settings):
    settings.FISCAL_SEFAZ_MOCK = True


def test_rota_nomeada():
    assert reverse("fiscal:nfce_emitir") == API_URL


@pytest.mark.django_db
def test_emitir_via_api_happy_path(api_client, configuracao_fiscal, pedido):
    resp = api_client.post(API_URL, {"pedido_id": str(pedido.id)}, format="json")

    assert resp.status_code == 201, resp.content
    body = resp.json()
    assert body["success"] is True
    assert body["status"] == NfceStatus.AUTHORIZED
    assert body["numero"] == 1
    assert len(body["chave_acesso"]) == 44
    assert body["protocolo"]

    cupom = NfceCupom.objects.get(pk=body["cupom_id"])
    assert cupom.status == NfceStatus.AUTHORIZED
    assert cupom.pedido_id == pedido.id


@pytest.mark.django_db
def test_emitir_com_consumidor_identificado(api_client, configuracao_fiscal, pedido):
    payload = {
        "pedido_id": str(pedido.id),
        "consumidor": {"nome": "Fulano", "cpf_cnpj": "123.456.789-09", "email": "fulano@example.com"},
        "observacoes": "Sem cebola",
    }

    resp = api_client.post(API_URL, payload, format="json")

    assert resp.status_code == 201, resp.content
    cupom = NfceCupom.objects.get(pk=resp.json()["cupom_id"])
    assert cupom.consumidor_cpf_cnpj == "12345678909"
    assert cupom.observacoes == "Sem cebola"
    assert "<CPF>12345678909</CPF>" in cupom.xml_content


@pytest.mark.django_db
def test_sem_configuracao_fiscal_409(api_client, pedido):
    resp = api_client.post(API_URL, {"pedido_id": str(pedido.id)}, format="json")

    assert resp.status_code == 409
    assert resp.json()["code"] == "FISCAL_1001"


@pytest.mark.django_db
def test_certificado_expirado_403(api_client, user, pedido):
    criar_configuracao_fiscal(user, pfx=gerar_certificado_expirado())

    resp = api_client.post(API_URL, {"pedido_id": str(pedido.id)}, format="json")

    assert resp.status_code == 403
    body = resp.json()
    assert body["code"] == "FISCAL_3001"
    assert "Certificado expirado" in body["message"]
    assert NfceCupom.objects.count() == 0


@pytest.mark.django_db
def test_pedido_inexistente_404(api_client, configuracao_fiscal):
    resp = api_client.post(API_URL, {"pedido_id": str(uuid.uuid4())}, format="json")

    assert resp.status_code == 404
    assert resp.json()["code"] == "FISCAL_4040"
