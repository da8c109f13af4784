# tests/fiscal/sefaz/test_sefaz_factory.py
from fiscal.sefaz_clients import MockSefazClient, SefazClient
from fiscal.sefaz_factory import get_sefaz_client


def test_factory_mock_quando_configurado(settings):
    settings.FISCAL_SEFAZ_MOCK = True

    assert isinstance(get_sefaz_client(None), MockSefazClient)


def test_factory_client_real_com_timeout_das_settings(settings):
    settings.FISCAL_SEFAZ_MOCK = False
    settings.FISCAL_SEFAZ_TIMEOUT = 12

    client = get_sefaz_client(None)

    assert isinstance(client, SefazClient)
    assert client.timeout == 12
    assert client.assinador is None
