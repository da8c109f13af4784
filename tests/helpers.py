# tests/helpers.py
"""
Utilitários compartilhados pelos testes fiscais:

- certificado A1 de teste (PKCS#12 autoassinado, gerado com cryptography);
- FakeSession/FakeResponse no lugar de requests.Session;
- respostas SOAP da SEFAZ prontas para os cenários mais comuns;
- configuração fiscal e pedido prontos para emitir.
"""

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from functools import lru_cache

import requests
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import BestAvailableEncryption, pkcs12
from cryptography.x509.oid import NameOID

from fiscal.models import ConfiguracaoFiscal
from pedidos.models import Pedido, PedidoItem

SENHA_PFX = "1234"
CNPJ_TESTE = "12345678000195"
CN_TESTE = "EMPRESA TESTE LTDA CNPJ: 12.345.678/0001-95"


@lru_cache(maxsize=1)
def chave_rsa_teste() -> rsa.RSAPrivateKey:
    # gerar 2048 bits a cada teste deixaria a suíte lenta
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def gerar_certificado_pfx(
    *,
    senha: str = SENHA_PFX,
    common_name: str = CN_TESTE,
    valido_de: datetime = None,
    valido_ate: datetime = None,
) -> bytes:
    agora = datetime.now(dt_timezone.utc)
    valido_de = valido_de or agora - timedelta(days=1)
    valido_ate = valido_ate or agora + timedelta(days=365)

    chave = chave_rsa_teste()
    nome = x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, "BR"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "ICP-Brasil Teste"),
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
    ])
    certificado = (
        x509.CertificateBuilder()
        .subject_name(nome)
        .issuer_name(nome)
        .public_key(chave.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(valido_de)
        .not_valid_after(valido_ate)
        .sign(chave, hashes.SHA256())
    )

    return pkcs12.serialize_key_and_certificates(
        name=b"a1-teste",
        key=chave,
        cert=certificado,
        cas=None,
        encryption_algorithm=BestAvailableEncryption(senha.encode("utf-8")),
    )


def gerar_certificado_expirado(**kwargs) -> bytes:
    agora = datetime.now(dt_timezone.utc)
    return gerar_certificado_pfx(
        valido_de=agora - timedelta(days=400),
        valido_ate=agora - timedelta(days=1),
        **kwargs,
    )


class FakeResponse:
    def __init__(self, text: str = "", status_code: int = 200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error", response=self)


class FakeSession:
    """
    Substitui requests.Session: grava cada POST e devolve as respostas
    configuradas em ordem (ou levanta `erro`, se informado).
    """

    def __init__(self, *respostas, erro: Exception = None):
        self.respostas = list(respostas)
        self.erro = erro
        self.chamadas = []

    def post(self, url, data=None, headers=None, timeout=None):
        self.chamadas.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        if self.erro is not None:
            raise self.erro
        resposta = self.respostas.pop(0)
        if isinstance(resposta, str):
            resposta = FakeResponse(resposta)
        return resposta


NFE_NS = "http://www.portalfiscal.inf.br/nfe"


def retorno_autorizacao(chave: str = "", *, cstat: str = "100", motivo: str = "Autorizado o uso da NF-e",
                        protocolo: str = "135250000000001") -> str:
    nprot = f"<nProt>{protocolo}</nProt>" if protocolo else ""
    return (
        '<soap:Envelope xmlns:soap="http://www.w3.org/2003/05/soap-envelope"><soap:Body>'
        f'<retEnviNFe xmlns="{NFE_NS}" versao="4.00">'
        "<tpAmb>2</tpAmb><cStat>104</cStat><xMotivo>Lote processado</xMotivo>"
        f"<protNFe versao=\"4.00\"><infProt><tpAmb>2</tpAmb><chNFe>{chave}</chNFe>"
        f"{nprot}<cStat>{cstat}</cStat><xMotivo>{motivo}</xMotivo></infProt></protNFe>"
        "</retEnviNFe></soap:Body></soap:Envelope>"
    )


def retorno_consulta(chave: str = "", *, cstat: str = "100", motivo: str = "Autorizado o uso da NF-e",
                     protocolo: str = "135250000000001") -> str:
    return (
        '<soap:Envelope xmlns:soap="http://www.w3.org/2003/05/soap-envelope"><soap:Body>'
        f'<retConsSitNFe xmlns="{NFE_NS}" versao="4.00"><tpAmb>2</tpAmb>'
        f"<cStat>{cstat}</cStat><xMotivo>{motivo}</xMotivo><chNFe>{chave}</chNFe>"
        f"<protNFe versao=\"4.00\"><infProt><chNFe>{chave}</chNFe><nProt>{protocolo}</nProt>"
        f"<cStat>{cstat}</cStat><xMotivo>{motivo}</xMotivo></infProt></protNFe>"
        "</retConsSitNFe></soap:Body></soap:Envelope>"
    )


def retorno_cancelamento(chave: str = "", *, cstat: str = "135",
                         motivo: str = "Evento registrado e vinculado a NF-e",
                         protocolo: str = "135250000000099") -> str:
    return (
        '<soap:Envelope xmlns:soap="http://www.w3.org/2003/05/soap-envelope"><soap:Body>'
        f'<retEvento xmlns="{NFE_NS}" versao="1.00"><infEvento>'
        f"<tpAmb>2</tpAmb><cStat>{cstat}</cStat><xMotivo>{motivo}</xMotivo>"
        f"<chNFe>{chave}</chNFe><nProt>{protocolo}</nProt>"
        "</infEvento></retEvento></soap:Body></soap:Envelope>"
    )


# ---------------------------------------------------------------------------
# Dados de domínio
# ---------------------------------------------------------------------------


def criar_configuracao_fiscal(owner, *, pfx: bytes = None, senha: str = SENHA_PFX, **overrides):
    dados = dict(
        owner=owner,
        cnpj=CNPJ_TESTE,
        inscricao_estadual="123456789012",
        razao_social="EMPRESA TESTE LTDA",
        nome_fantasia="Lanchonete Teste",
        logradouro="Avenida Paulista",
        numero_endereco="1000",
        bairro="Bela Vista",
        codigo_municipio="3550308",
        municipio="São Paulo",
        uf="SP",
        cep="01310100",
        telefone="1133334444",
        csc_id="000001",
        csc_token="CSCTOKENTESTE123",
    )
    dados.update(overrides)

    config = ConfiguracaoFiscal(**dados)
    config.set_certificado(pfx if pfx is not None else gerar_certificado_pfx(), senha)
    config.save()
    return config


def criar_pedido(owner, itens=(("X-Burger", Decimal("50.00"), Decimal("1")),), total=None):
    soma = sum((preco * qtd for _nome, preco, qtd in itens), Decimal("0.00"))
    pedido = Pedido.objects.create(owner=owner, total=total if total is not None else soma)
    for posicao, (nome, preco, qtd) in enumerate(itens):
        PedidoItem.objects.create(
            pedido=pedido,
            posicao=posicao,
            produto_id=f"PROD-{posicao + 1}",
            nome=nome,
            preco_unitario=preco,
            quantidade=qtd,
        )
    return pedido
