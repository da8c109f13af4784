import base64
import hashlib
import uuid

from cryptography.fernet import Fernet, InvalidToken
from django.conf import settings
from django.core.validators import MinLengthValidator, RegexValidator
from django.db import models
from django.utils import timezone

from fiscal.exceptions import CertificateFormatError

somente_digitos = RegexValidator(r"^\d+$", "Informe somente números.")


def _fernet() -> Fernet:
    segredo = getattr(settings, "FISCAL_CERT_ENCRYPTION_KEY", "") or settings.SECRET_KEY
    chave = base64.urlsafe_b64encode(hashlib.sha256(segredo.encode("utf-8")).digest())
    return Fernet(chave)


class Ambiente(models.TextChoices):
    PRODUCTION = "production", "Produção"
    STAGING = "staging", "Homologação"


class RegimeTributario(models.TextChoices):
    SIMPLES_NACIONAL = "1", "Simples Nacional"
    SIMPLES_EXCESSO = "2", "Simples Nacional - excesso de sublimite"
    REGIME_NORMAL = "3", "Regime Normal"


class ConfiguracaoFiscal(models.Model):
    """
    Configuração fiscal NFC-e do estabelecimento (uma ativa por conta).

    - Identidade do emitente (emit/enderEmit na NFC-e).
    - Série e próximo número da NFC-e: avançados SOMENTE por
      fiscal.services.numero_service (incremento atômico no banco).
    - Certificado A1 e senha criptografados em repouso (Fernet).
    - CSC (id + token) para o hash do QR Code.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="configuracoes_fiscais",
    )

    # Identidade
    cnpj = models.CharField(
        max_length=14,
        validators=[MinLengthValidator(14), somente_digitos],
        help_text="CNPJ do emitente (somente números, 14 dígitos).",
    )
    inscricao_estadual = models.CharField(max_length=14, help_text="Inscrição Estadual (IE).")
    inscricao_municipal = models.CharField(max_length=15, blank=True, null=True)
    razao_social = models.CharField(max_length=120, help_text="Razão social (xNome).")
    nome_fantasia = models.CharField(max_length=120, blank=True, null=True, help_text="Nome fantasia (xFant).")

    # Endereço (enderEmit)
    logradouro = models.CharField(max_length=120)
    numero_endereco = models.CharField(max_length=20, default="S/N")
    complemento = models.CharField(max_length=60, blank=True, null=True)
    bairro = models.CharField(max_length=60)
    codigo_municipio = models.CharField(
        max_length=7,
        validators=[MinLengthValidator(7), somente_digitos],
        help_text="Código IBGE do município (7 dígitos).",
    )
    municipio = models.CharField(max_length=60)
    uf = models.CharField(max_length=2)
    cep = models.CharField(max_length=8, validators=[somente_digitos])
    telefone = models.CharField(max_length=14, blank=True, null=True)

    # Numeração
    nfce_serie = models.PositiveIntegerField(default=1)
    nfce_proximo_numero = models.PositiveIntegerField(default=1)

    # Certificado A1 (criptografado)
    certificado_pfx = models.BinaryField(blank=True, null=True, editable=False)
    certificado_senha = models.TextField(blank=True, null=True, editable=False)

    ambiente = models.CharField(max_length=20, choices=Ambiente.choices, default=Ambiente.STAGING)
    regime_tributario = models.CharField(
        max_length=1,
        choices=RegimeTributario.choices,
        default=RegimeTributario.SIMPLES_NACIONAL,
    )

    # CSC
    csc_id = models.CharField(max_length=10, blank=True, null=True)
    csc_token = models.CharField(max_length=64, blank=True, null=True)

    ativo = models.BooleanField(default=True, db_index=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "fiscal_configuracao"
        constraints = [
            models.UniqueConstraint(
                fields=["owner"],
                condition=models.Q(ativo=True),
                name="fiscal_configuracao_ativa_por_owner",
            ),
        ]

    def __str__(self):
        return f"Configuração fiscal {self.cnpj} ({self.uf}/{self.ambiente})"

    # ------------------------------------------------------------------
    # Certificado A1
    # ------------------------------------------------------------------
    def set_certificado(self, pfx: bytes, senha: str) -> None:
        """Criptografa e guarda o bundle PKCS#12 + senha (não salva o model)."""
        f = _fernet()
        self.certificado_pfx = f.encrypt(bytes(pfx))
        self.certificado_senha = f.encrypt((senha or "").encode("utf-8")).decode("ascii")

    @property
    def possui_certificado(self) -> bool:
        return bool(self.certificado_pfx)

    def get_certificado_base64(self) -> str:
        if not self.certificado_pfx:
            raise CertificateFormatError("Certificado digital não configurado.")
        try:
            pfx = _fernet().decrypt(bytes(self.certificado_pfx))
        except InvalidToken as exc:
            raise CertificateFormatError("Não foi possível descriptografar o certificado armazenado.") from exc
        return base64.b64encode(pfx).decode("ascii")

    def get_certificado_senha(self) -> str:
        if not self.certificado_senha:
            return ""
        try:
            return _fernet().decrypt(self.certificado_senha.encode("ascii")).decode("utf-8")
        except InvalidToken as exc:
            raise CertificateFormatError("Não foi possível descriptografar a senha do certificado.") from exc
