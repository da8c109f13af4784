import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from fiscal.exceptions import DatabaseError as FiscalDatabaseError


class NfceStatus(models.TextChoices):
    PENDING = "pending", "Pendente"
    AUTHORIZED = "authorized", "Autorizada"
    REJECTED = "rejected", "Rejeitada"
    CANCELED = "canceled", "Cancelada"


class NfceCupom(models.Model):
    """
    Documento fiscal NFC-e (modelo 65), um por tentativa de emissão.

    - Criado em 'pending' ANTES da transmissão: sempre existe registro
      de auditoria, mesmo que a comunicação com a SEFAZ falhe.
    - Status só muda via NfceStateMachine.
    - Nunca é excluído (exigência fiscal).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    configuracao = models.ForeignKey(
        "fiscal.ConfiguracaoFiscal",
        on_delete=models.PROTECT,
        related_name="cupons",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="nfce_cupons",
    )
    pedido = models.ForeignKey(
        "pedidos.Pedido",
        on_delete=models.PROTECT,
        related_name="nfce_cupons",
    )

    numero = models.PositiveIntegerField()
    serie = models.PositiveIntegerField()

    # Chave de acesso da NFC-e (44 dígitos)
    chave_acesso = models.CharField(max_length=44, unique=True)
    codigo_numerico = models.CharField(max_length=8, help_text="cNF: código numérico aleatório de 8 dígitos.")

    valor_total = models.DecimalField(max_digits=12, decimal_places=2)
    valor_desconto = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    valor_tributos = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Valor aproximado dos tributos (vTotTrib).",
    )

    # Consumidor (dest), opcional
    consumidor_nome = models.CharField(max_length=60, blank=True, null=True)
    consumidor_cpf_cnpj = models.CharField(max_length=14, blank=True, null=True)
    consumidor_email = models.EmailField(blank=True, null=True)
    observacoes = models.TextField(blank=True, null=True)

    status = models.CharField(max_length=20, choices=NfceStatus.choices, default=NfceStatus.PENDING)

    # Retorno da SEFAZ
    codigo_status = models.CharField(max_length=3, blank=True, null=True, help_text="Último cStat recebido.")
    protocolo_autorizacao = models.CharField(max_length=20, blank=True, null=True)
    data_hora_autorizacao = models.DateTimeField(blank=True, null=True)
    motivo_rejeicao = models.TextField(blank=True, null=True)

    # XML sem assinatura (gerado) e assinado (enviado/autorizado)
    xml_content = models.TextField(blank=True, null=True)
    xml_autorizado = models.TextField(blank=True, null=True)

    qr_code_url = models.TextField(blank=True, null=True)

    # Cancelamento
    protocolo_cancelamento = models.CharField(max_length=20, blank=True, null=True)
    motivo_cancelamento = models.CharField(max_length=255, blank=True, null=True)
    data_hora_cancelamento = models.DateTimeField(blank=True, null=True)

    # Ambiente / UF (redundante, mas útil em consultas)
    ambiente = models.CharField(max_length=20)
    uf = models.CharField(max_length=2)

    data_hora_emissao = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "nfce_cupom"
        constraints = [
            models.UniqueConstraint(
                fields=["configuracao", "serie", "numero"],
                name="nfce_cupom_numero_unico_por_serie",
            ),
        ]
        indexes = [
            models.Index(fields=["owner", "status"], name="nfce_cupom_owner_status_idx"),
            models.Index(fields=["pedido"], name="nfce_cupom_pedido_idx"),
        ]

    def __str__(self):
        return f"NFC-e {self.numero}/{self.serie} - {self.chave_acesso} ({self.status})"

    def delete(self, *args, **kwargs):
        raise FiscalDatabaseError("Documentos NFC-e não podem ser excluídos.")


class NfceItem(models.Model):
    """Item da NFC-e (det). Criado junto com o cupom e imutável depois disso."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    cupom = models.ForeignKey(NfceCupom, on_delete=models.PROTECT, related_name="itens")

    numero_item = models.PositiveIntegerField()
    produto_id = models.CharField(max_length=64, blank=True, null=True)
    codigo_produto = models.CharField(max_length=60)
    descricao = models.CharField(max_length=120)

    ncm = models.CharField(max_length=8)
    cfop = models.CharField(max_length=4)
    unidade = models.CharField(max_length=6)

    quantidade = models.DecimalField(max_digits=12, decimal_places=3)
    valor_unitario = models.DecimalField(max_digits=12, decimal_places=2)
    valor_total = models.DecimalField(max_digits=12, decimal_places=2)
    valor_desconto = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    cst_icms = models.CharField(max_length=3, help_text="CSOSN (Simples Nacional).")
    aliquota_icms = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    valor_icms = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    cst_pis = models.CharField(max_length=2)
    aliquota_pis = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    valor_pis = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    cst_cofins = models.CharField(max_length=2)
    aliquota_cofins = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    valor_cofins = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        db_table = "nfce_item"
        ordering = ["numero_item"]
        constraints = [
            models.UniqueConstraint(fields=["cupom", "numero_item"], name="nfce_item_numero_unico"),
        ]

    def __str__(self):
        return f"Item {self.numero_item} - {self.descricao}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise FiscalDatabaseError("Itens de NFC-e são imutáveis após a emissão.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise FiscalDatabaseError("Itens de NFC-e não podem ser excluídos.")


class TipoOperacao(models.TextChoices):
    EMISSAO = "emissao", "Emissão"
    CONSULTA = "consulta", "Consulta"
    CANCELAMENTO = "cancelamento", "Cancelamento"


class NfceTransmissao(models.Model):
    """
    Trilha de auditoria: uma linha por ida-e-volta à SEFAZ.

    Somente inclusão: nunca é alterada nem excluída.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    cupom = models.ForeignKey(NfceCupom, on_delete=models.PROTECT, related_name="transmissoes")
    tipo_operacao = models.CharField(max_length=20, choices=TipoOperacao.choices)

    xml_enviado = models.TextField(blank=True, null=True)
    xml_retorno = models.TextField(blank=True, null=True)

    codigo_status = models.CharField(max_length=3, blank=True, null=True)
    motivo = models.TextField(blank=True, null=True)
    protocolo = models.CharField(max_length=20, blank=True, null=True)
    sucesso = models.BooleanField(default=False)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "nfce_transmissao"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["cupom", "tipo_operacao"], name="nfce_transm_cupom_tipo_idx"),
        ]

    def __str__(self):
        return f"[{self.tipo_operacao}] cupom={self.cupom_id} cStat={self.codigo_status}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise FiscalDatabaseError("Registros de transmissão são somente inclusão.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise FiscalDatabaseError("Registros de transmissão não podem ser excluídos.")
