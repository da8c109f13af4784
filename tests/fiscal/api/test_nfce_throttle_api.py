# tests/fiscal/api/test_nfce_throttle_api.py
import uuid

import pytest
from django.urls import reverse
from rest_framework.throttling import UserRateThrottle


@pytest.mark.django_db
def test_excesso_de_requisicoes_gera_429(api_client, monkeypatch):
    monkeypatch.setattr(UserRateThrottle, "THROTTLE_RATES", {"user": "2/min"})
    url = reverse("fiscal:nfce_xml", kwargs={"cupom_id": uuid.uuid4()})

    respostas = [api_client.get(url).status_code for _ in range(3)]

    assert respostas == [404, 404, 429]
