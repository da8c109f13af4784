# tests/commons/test_request_log_middleware.py
import logging
import uuid

import pytest
from django.urls import reverse
from rest_framework.test import APIClient


@pytest.fixture
def request_logs(caplog):
    request_logger = logging.getLogger("pdv.request")
    request_logger.addHandler(caplog.handler)
    caplog.set_level(logging.INFO, logger="pdv.request")
    yield caplog
    request_logger.removeHandler(caplog.handler)


@pytest.mark.django_db
def test_request_id_do_cliente_e_devolvido(request_logs):
    request_id = "req-123"

    resp = APIClient().post(reverse("fiscal:nfce_emitir"), {}, format="json", HTTP_X_REQUEST_ID=request_id)

    assert resp["X-Request-ID"] == request_id
    rec = [r for r in request_logs.records if r.getMessage() == "http_request"][-1]
    assert rec.request_id == request_id
    assert rec.status == 401
    assert rec.method == "POST"
    assert rec.path == reverse("fiscal:nfce_emitir")
    assert rec.latency_ms >= 0


@pytest.mark.django_db
def test_request_id_gerado_quando_ausente():
    resp = APIClient().get(reverse("fiscal:nfce_xml", kwargs={"cupom_id": uuid.uuid4()}))

    gerado = resp["X-Request-ID"]
    assert uuid.UUID(gerado)
