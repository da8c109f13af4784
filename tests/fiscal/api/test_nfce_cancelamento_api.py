# tests/fiscal/api/test_nfce_cancelamento_api.py
import pytest
from django.urls import reverse

from fiscal.models import NfceStatus

MOTIVO = "Cliente desistiu da compra no caixa"


@pytest.fixture(autouse=True)
def _sefaz_mock(settings):
    settings.FISCAL_SEFAZ_MOCK = True


def _emitir(api_client, pedido):
    resp = api_client.post(reverse("fiscal:nfce_emitir"), {"pedido_id": str(pedido.id)}, format="json")
    assert resp.status_code == 201, resp.content
    return resp.json()["cupom_id"]


@pytest.mark.django_db
def test_cancelar_via_api(api_client, configuracao_fiscal, pedido):
    cupom_id = _emitir(api_client, pedido)
    url = reverse("fiscal:nfce_cancelar", kwargs={"cupom_id": cupom_id})

    resp = api_client.post(url, {"motivo": MOTIVO}, format="json")

    assert resp.status_code == 200, resp.content
    body = resp.json()
    assert body["success"] is True
    assert body["status"] == NfceStatus.CANCELED
    assert body["motivo"]


@pytest.mark.django_db
def test_cancelar_duas_vezes_409(api_client, configuracao_fiscal, pedido):
    cupom_id = _emitir(api_client, pedido)
    url = reverse("fiscal:nfce_cancelar", kwargs={"cupom_id": cupom_id})
    api_client.post(url, {"motivo": MOTIVO}, format="json")

    resp = api_client.post(url, {"motivo": MOTIVO}, format="json")

    assert resp.status_code == 409
    assert resp.json()["code"] == "FISCAL_4003"


@pytest.mark.django_db
def test_motivo_curto_400(api_client, configuracao_fiscal, pedido):
    cupom_id = _emitir(api_client, pedido)
    url = reverse("fiscal:nfce_cancelar", kwargs={"cupom_id": cupom_id})

    resp = api_client.post(url, {"motivo": "curto"}, format="json")

    assert resp.status_code == 400
    assert "motivo" in resp.json()


@pytest.mark.django_db
def test_consultar_via_api(api_client, configuracao_fiscal, pedido):
    cupom_id = _emitir(api_client, pedido)

    resp = api_client.post(reverse("fiscal:nfce_consultar", kwargs={"cupom_id": cupom_id}), format="json")

    assert resp.status_code == 200, resp.content
    body = resp.json()
    assert body["success"] is True
    assert body["status"] == NfceStatus.AUTHORIZED
    assert body["protocolo"]
    assert body["motivo"]
