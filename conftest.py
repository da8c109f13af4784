# conftest.py (na raiz do projeto)

import logging

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from fiscal.models import NfceCupom
from fiscal.sefaz_clients import SefazClient
from fiscal.services.emissao_service import emitir_nfce
from tests.helpers import FakeSession, criar_configuracao_fiscal, criar_pedido, retorno_autorizacao


# =============================================================================
# USUÁRIOS / API
# =============================================================================

@pytest.fixture(autouse=True)
def _limpa_cache_throttle():
    # UserRateThrottle conta requisições no cache; ids de usuário se repetem entre testes
    cache.clear()
    yield


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(username="operador", password="123456")


@pytest.fixture
def outro_user(django_user_model):
    return django_user_model.objects.create_user(username="outro-operador", password="123456")


def _jwt_for_user(user):
    refresh = RefreshToken.for_user(user)
    return str(refresh.access_token)


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {_jwt_for_user(user)}")
    return client


# =============================================================================
# CONFIGURAÇÃO FISCAL / PEDIDO
# =============================================================================

@pytest.fixture
def configuracao_fiscal(user):
    return criar_configuracao_fiscal(user)


@pytest.fixture
def pedido(user):
    return criar_pedido(user)


# =============================================================================
# SEFAZ FAKE / LOGS
# =============================================================================

@pytest.fixture
def sefaz_fake():
    """
    Devolve (session, factory): a factory monta um SefazClient real
    (assinatura de verdade) cujo transporte é a FakeSession.
    Configure as respostas em session.respostas antes de chamar o service.
    """
    session = FakeSession()

    def factory(certificado):
        return SefazClient(certificado, session=session, timeout=5)

    return session, factory


@pytest.fixture
def fiscal_logs(caplog):
    """
    'pdv.fiscal' não propaga para o root (ver LOGGING): pendura o handler
    do caplog direto no logger fiscal.
    """
    fiscal_logger = logging.getLogger("pdv.fiscal")
    fiscal_logger.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG, logger="pdv.fiscal")
    yield caplog
    fiscal_logger.removeHandler(caplog.handler)


@pytest.fixture
def cupom_autorizado(user, configuracao_fiscal, pedido, sefaz_fake):
    """Cupom já emitido e autorizado (protocolo 135250000000001)."""
    session, factory = sefaz_fake
    session.respostas.append(retorno_autorizacao())

    result = emitir_nfce(user=user, pedido_id=pedido.id, sefaz_client_factory=factory)
    session.chamadas.clear()
    return NfceCupom.objects.get(pk=result.cupom_id)
