# fiscal/sefaz_factory.py
"""
Factory de clients SEFAZ.

Ponto único de escolha entre o client real (SefazClient) e o MockSefazClient,
a partir das settings:

  - FISCAL_SEFAZ_MOCK=True  → MockSefazClient (dev/homologação local)
  - FISCAL_SEFAZ_TIMEOUT    → timeout (segundos) das chamadas SOAP

Os services recebem a factory por injeção (sefaz_client_factory) e só caem
aqui quando nenhuma é informada.
"""

from __future__ import annotations

from typing import Optional

from django.conf import settings

from fiscal.certificado import CertificadoA1
from fiscal.sefaz_clients import MockSefazClient, SefazClient, SefazClientProtocol


def get_sefaz_client(certificado: Optional[CertificadoA1] = None) -> SefazClientProtocol:
    if getattr(settings, "FISCAL_SEFAZ_MOCK", False):
        return MockSefazClient(certificado)

    return SefazClient(
        certificado,
        timeout=getattr(settings, "FISCAL_SEFAZ_TIMEOUT", 30),
    )
