"""
Camada de client SEFAZ (webservices NFC-e, SOAP 1.2).

Este módulo define:

- SefazResponse, o DTO único de retorno das três operações.
- parse_sefaz_response, extração de cStat/xMotivo/nProt/chNFe com lxml.
- SefazClient, implementação real: assina → envelope SOAP → POST → parse.
- MockSefazClient, usado em desenvolvimento (FISCAL_SEFAZ_MOCK=1).

Falhas de rede/HTTP nunca saem do client como exceção: viram
SefazResponse(success=False, codigo_status="999"). Erros de assinatura,
por outro lado, indicam defeito de código e são propagados.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Protocol

import requests
from lxml import etree

from fiscal.assinatura import AssinadorXML
from fiscal.certificado import CertificadoA1
from fiscal.exceptions import SigningError, TransmissionError
from fiscal.sefaz_endpoints import get_sefaz_endpoint, normalizar_ambiente, tp_amb

logger = logging.getLogger("pdv.fiscal")

NFE_NS = "http://www.portalfiscal.inf.br/nfe"
SOAP12_NS = "http://www.w3.org/2003/05/soap-envelope"
WSDL_BASE = "http://www.portalfiscal.inf.br/nfe/wsdl"

SOAP_ACTION_RECEPCAO = f"{WSDL_BASE}/NfeRecepcao/nfeRecepcaoLote"
SOAP_ACTION_CONSULTA = f"{WSDL_BASE}/NfeConsulta/nfeConsultaNF"
SOAP_ACTION_CANCELAMENTO = f"{WSDL_BASE}/NfeCancelamento/nfeCancelamento"

CODIGO_ERRO_INTERNO = "999"

# 100 = autorizado o uso; 150 = autorizado fora de prazo
CODIGOS_AUTORIZACAO = ("100", "150")
# 101 = cancelamento homologado; 135/155 = evento de cancelamento registrado
CODIGOS_CANCELAMENTO = ("101", "135", "155")

_BLOCOS_PROTOCOLO = ("infProt", "infEvento", "infCanc")


# ---------------------------------------------------------------------------
# DTO de resposta da SEFAZ
# ---------------------------------------------------------------------------


@dataclass
class SefazResponse:
    """
    Resultado de uma ida-e-volta à SEFAZ (autorização, consulta ou cancelamento).

    Mapeado pelos services para NfceCupom (status/protocolo) e
    NfceTransmissao (trilha de auditoria).
    """

    success: bool
    codigo_status: str
    motivo: str
    protocolo: Optional[str] = None
    xml_retorno: str = ""
    chave_acesso: Optional[str] = None
    xml_enviado: Optional[str] = None


def _resposta_erro(motivo: str, xml_retorno: str = "", xml_enviado: Optional[str] = None) -> SefazResponse:
    return SefazResponse(
        success=False,
        codigo_status=CODIGO_ERRO_INTERNO,
        motivo=motivo,
        xml_retorno=xml_retorno,
        xml_enviado=xml_enviado,
    )


def _texto(elemento: etree._Element, tag: str) -> Optional[str]:
    encontrados = elemento.xpath(".//*[local-name()=$tag]", tag=tag)
    if not encontrados:
        return None
    valor = (encontrados[0].text or "").strip()
    return valor or None


def parse_sefaz_response(
    xml_retorno: str,
    codigos_sucesso: Iterable[str] = CODIGOS_AUTORIZACAO,
) -> SefazResponse:
    """
    Extrai cStat, xMotivo, nProt e chNFe do retorno SOAP.

    Os campos do bloco de protocolo (infProt/infEvento/infCanc) têm prioridade
    sobre os do lote, que costuma trazer seu próprio cStat (ex.: 104).
    """
    try:
        root = etree.fromstring(
            (xml_retorno or "").encode("utf-8"),
            etree.XMLParser(resolve_entities=False, no_network=True),
        )
    except (etree.XMLSyntaxError, ValueError):
        return _resposta_erro("Erro ao processar resposta da Sefaz", xml_retorno=xml_retorno or "")

    escopos = root.xpath(
        "//*[" + " or ".join(f"local-name()='{nome}'" for nome in _BLOCOS_PROTOCOLO) + "]"
    )
    escopos.append(root)

    def _campo(tag: str) -> Optional[str]:
        for escopo in escopos:
            valor = _texto(escopo, tag)
            if valor is not None:
                return valor
        return None

    codigo = _campo("cStat") or CODIGO_ERRO_INTERNO
    motivo = _campo("xMotivo") or "Erro desconhecido"

    return SefazResponse(
        success=codigo in tuple(codigos_sucesso),
        codigo_status=codigo,
        motivo=motivo,
        protocolo=_campo("nProt"),
        xml_retorno=xml_retorno,
        chave_acesso=_campo("chNFe"),
    )


# ---------------------------------------------------------------------------
# Contrato do client SEFAZ
# ---------------------------------------------------------------------------


class SefazClientProtocol(Protocol):
    """
    Contrato mínimo que um client SEFAZ deve cumprir.

    Os services de emissão/consulta/cancelamento dependem deste protocolo,
    e não da implementação concreta.
    """

    def enviar_nfce(self, xml: str, uf: str, ambiente: str) -> SefazResponse:
        ...

    def consultar_nfce(self, chave_acesso: str, uf: str, ambiente: str) -> SefazResponse:
        ...

    def cancelar_nfce(
        self,
        chave_acesso: str,
        protocolo: str,
        motivo: str,
        uf: str,
        ambiente: str,
    ) -> SefazResponse:
        ...


# ---------------------------------------------------------------------------
# Documentos de cada operação
# ---------------------------------------------------------------------------


def _nfe(tag: str) -> str:
    return f"{{{NFE_NS}}}{tag}"


def montar_consulta_xml(chave_acesso: str, ambiente: str) -> str:
    root = etree.Element(_nfe("consSitNFe"), nsmap={None: NFE_NS}, versao="4.00")
    etree.SubElement(root, _nfe("tpAmb")).text = tp_amb(ambiente)
    etree.SubElement(root, _nfe("xServ")).text = "CONSULTAR"
    etree.SubElement(root, _nfe("chNFe")).text = chave_acesso
    return etree.tostring(root, encoding="unicode")


def montar_cancelamento_xml(chave_acesso: str, protocolo: str, motivo: str, ambiente: str) -> str:
    root = etree.Element(_nfe("cancNFe"), nsmap={None: NFE_NS}, versao="1.00")
    inf = etree.SubElement(root, _nfe("infCanc"), Id=f"ID110111{chave_acesso}01")
    etree.SubElement(inf, _nfe("tpAmb")).text = tp_amb(ambiente)
    etree.SubElement(inf, _nfe("xServ")).text = "CANCELAR"
    etree.SubElement(inf, _nfe("chNFe")).text = chave_acesso
    etree.SubElement(inf, _nfe("nProt")).text = protocolo
    etree.SubElement(inf, _nfe("xJust")).text = motivo
    return etree.tostring(root, encoding="unicode")


def montar_lote_xml(nfe_assinada: str, id_lote: Optional[str] = None) -> str:
    """Envolve a NFe assinada em enviNFe (lote síncrono de um documento)."""
    root = etree.Element(_nfe("enviNFe"), nsmap={None: NFE_NS}, versao="4.00")
    etree.SubElement(root, _nfe("idLote")).text = id_lote or datetime.now().strftime("%y%m%d%H%M%S%f")[:15]
    etree.SubElement(root, _nfe("indSinc")).text = "1"
    root.append(etree.fromstring(nfe_assinada.encode("utf-8")))
    return etree.tostring(root, encoding="unicode")


def montar_envelope_soap(servico: str, operacao: str, dados_xml: str) -> str:
    """
    Envelope SOAP 1.2:
      <soap12:Envelope><soap12:Body><nfe:{operacao}><nfe:nfeDadosMsg>...</...>
    """
    wsdl_ns = f"{WSDL_BASE}/{servico}"
    envelope = etree.Element(f"{{{SOAP12_NS}}}Envelope", nsmap={"soap12": SOAP12_NS, "nfe": wsdl_ns})
    body = etree.SubElement(envelope, f"{{{SOAP12_NS}}}Body")
    op = etree.SubElement(body, f"{{{wsdl_ns}}}{operacao}")
    dados = etree.SubElement(op, f"{{{wsdl_ns}}}nfeDadosMsg")
    dados.append(etree.fromstring(dados_xml.encode("utf-8")))
    return etree.tostring(envelope, encoding="unicode", xml_declaration=False)


# ---------------------------------------------------------------------------
# Implementação real
# ---------------------------------------------------------------------------


class SefazClient:
    """
    Client SOAP dos webservices NFC-e.

    O certificado (com a chave privada em memória) é usado apenas para
    assinar; o transporte é um requests.Session com timeout limitado.
    """

    def __init__(
        self,
        certificado: Optional[CertificadoA1] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
        assinador: Optional[AssinadorXML] = None,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.assinador = assinador or (AssinadorXML(certificado) if certificado else None)

    def _assinar(self, xml: str, tag: str) -> str:
        if self.assinador is None:
            raise SigningError("Certificado não informado: impossível assinar o documento.")
        return self.assinador.assinar(xml, tag=tag)

    def _post(self, url: str, soap_action: str, envelope: str) -> str:
        headers = {
            "Content-Type": "text/xml; charset=utf-8",
            "SOAPAction": soap_action,
        }
        try:
            resp = self.session.post(
                url,
                data=envelope.encode("utf-8"),
                headers=headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise TransmissionError(str(exc)) from exc
        return resp.text

    def _executar(
        self,
        *,
        operacao: str,
        prefixo_erro: str,
        url: str,
        soap_action: str,
        envelope: str,
        xml_enviado: str,
        codigos_sucesso: Iterable[str],
        uf: str,
        ambiente: str,
    ) -> SefazResponse:
        try:
            xml_retorno = self._post(url, soap_action, envelope)
        except TransmissionError as exc:
            logger.warning(
                "sefaz_falha_comunicacao",
                extra={
                    "event": f"sefaz_{operacao}",
                    "uf": uf,
                    "ambiente": ambiente,
                    "url": url,
                    "error": exc.message,
                    "outcome": "transmission_error",
                },
            )
            return _resposta_erro(f"{prefixo_erro} {exc.message}", xml_enviado=xml_enviado)

        resposta = parse_sefaz_response(xml_retorno, codigos_sucesso)
        resposta.xml_enviado = xml_enviado

        logger.info(
            "sefaz_resposta",
            extra={
                "event": f"sefaz_{operacao}",
                "uf": uf,
                "ambiente": ambiente,
                "codigo_status": resposta.codigo_status,
                "chave_acesso": resposta.chave_acesso,
                "outcome": "success" if resposta.success else "failure",
            },
        )
        return resposta

    def enviar_nfce(self, xml: str, uf: str, ambiente: str) -> SefazResponse:
        ambiente = normalizar_ambiente(ambiente)
        nfe_assinada = self._assinar(xml, "infNFe")
        envelope = montar_envelope_soap("NfeRecepcao", "nfeRecepcaoLote", montar_lote_xml(nfe_assinada))
        return self._executar(
            operacao="autorizacao",
            prefixo_erro="Erro de comunicação:",
            url=get_sefaz_endpoint(uf, ambiente, "recepcao"),
            soap_action=SOAP_ACTION_RECEPCAO,
            envelope=envelope,
            xml_enviado=nfe_assinada,
            codigos_sucesso=CODIGOS_AUTORIZACAO,
            uf=uf,
            ambiente=ambiente,
        )

    def consultar_nfce(self, chave_acesso: str, uf: str, ambiente: str) -> SefazResponse:
        ambiente = normalizar_ambiente(ambiente)
        consulta = montar_consulta_xml(chave_acesso, ambiente)
        envelope = montar_envelope_soap("NfeConsulta", "nfeConsultaNF", consulta)
        return self._executar(
            operacao="consulta",
            prefixo_erro="Erro de consulta:",
            url=get_sefaz_endpoint(uf, ambiente, "consulta"),
            soap_action=SOAP_ACTION_CONSULTA,
            envelope=envelope,
            xml_enviado=consulta,
            codigos_sucesso=CODIGOS_AUTORIZACAO,
            uf=uf,
            ambiente=ambiente,
        )

    def cancelar_nfce(
        self,
        chave_acesso: str,
        protocolo: str,
        motivo: str,
        uf: str,
        ambiente: str,
    ) -> SefazResponse:
        ambiente = normalizar_ambiente(ambiente)
        cancelamento = self._assinar(
            montar_cancelamento_xml(chave_acesso, protocolo, motivo, ambiente),
            "infCanc",
        )
        envelope = montar_envelope_soap("NfeCancelamento", "nfeCancelamento", cancelamento)
        return self._executar(
            operacao="cancelamento",
            prefixo_erro="Erro de cancelamento:",
            url=get_sefaz_endpoint(uf, ambiente, "cancelamento"),
            soap_action=SOAP_ACTION_CANCELAMENTO,
            envelope=envelope,
            xml_enviado=cancelamento,
            codigos_sucesso=CODIGOS_CANCELAMENTO,
            uf=uf,
            ambiente=ambiente,
        )


# ---------------------------------------------------------------------------
# Implementação mock de client SEFAZ
# ---------------------------------------------------------------------------


class MockSefazClient:
    """
    Simula a SEFAZ em desenvolvimento: assina localmente (quando há certificado)
    e responde autorização 100, consulta 100 e cancelamento 135.

    As respostas passam pelo mesmo parse_sefaz_response do client real.
    """

    def __init__(self, certificado: Optional[CertificadoA1] = None, **_kwargs):
        self.assinador = AssinadorXML(certificado) if certificado else None

    @staticmethod
    def _protocolo() -> str:
        return "1" + "".join(secrets.choice("0123456789") for _ in range(14))

    @staticmethod
    def _chave_do_xml(xml: str) -> str:
        root = etree.fromstring(xml.encode("utf-8"))
        inf = root.xpath("//*[local-name()='infNFe']")
        return (inf[0].get("Id") or "")[3:] if inf else ""

    @staticmethod
    def _retorno(bloco: str, codigo: str, motivo: str, chave: str, protocolo: str) -> str:
        return (
            f'<ret xmlns="{NFE_NS}"><{bloco}><cStat>{codigo}</cStat>'
            f"<xMotivo>{motivo}</xMotivo><chNFe>{chave}</chNFe>"
            f"<nProt>{protocolo}</nProt></{bloco}></ret>"
        )

    def enviar_nfce(self, xml: str, uf: str, ambiente: str) -> SefazResponse:
        enviado = self.assinador.assinar(xml, tag="infNFe") if self.assinador else xml
        chave = self._chave_do_xml(enviado)
        retorno = self._retorno("infProt", "100", "Autorizado o uso da NF-e (mock)", chave, self._protocolo())
        resposta = parse_sefaz_response(retorno, CODIGOS_AUTORIZACAO)
        resposta.xml_enviado = enviado
        return resposta

    def consultar_nfce(self, chave_acesso: str, uf: str, ambiente: str) -> SefazResponse:
        retorno = self._retorno("infProt", "100", "Autorizado o uso da NF-e (mock)", chave_acesso, self._protocolo())
        resposta = parse_sefaz_response(retorno, CODIGOS_AUTORIZACAO)
        resposta.xml_enviado = montar_consulta_xml(chave_acesso, ambiente)
        return resposta

    def cancelar_nfce(
        self,
        chave_acesso: str,
        protocolo: str,
        motivo: str,
        uf: str,
        ambiente: str,
    ) -> SefazResponse:
        retorno = self._retorno("infEvento", "135", "Evento registrado e vinculado a NF-e (mock)", chave_acesso, self._protocolo())
        resposta = parse_sefaz_response(retorno, CODIGOS_CANCELAMENTO)
        resposta.xml_enviado = montar_cancelamento_xml(chave_acesso, protocolo, motivo, ambiente)
        return resposta
