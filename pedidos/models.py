# pedidos/models.py
import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class Pedido(models.Model):
    """
    Pedido fechado no PDV/cardápio. Entrada somente leitura para a emissão NFC-e.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="pedidos",
    )
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "pedido"
        indexes = [
            models.Index(fields=["owner", "created_at"], name="pedido_owner_created_idx"),
        ]

    def __str__(self):
        return f"Pedido {self.id} - R$ {self.total}"


class PedidoItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pedido = models.ForeignKey(
        Pedido,
        on_delete=models.CASCADE,
        related_name="itens",
    )
    posicao = models.PositiveIntegerField(default=0)
    produto_id = models.CharField(max_length=64, blank=True, null=True)
    nome = models.CharField(max_length=120)
    preco_unitario = models.DecimalField(max_digits=12, decimal_places=2)
    quantidade = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal("1.000"))

    class Meta:
        db_table = "pedido_item"
        ordering = ["posicao", "id"]

    @property
    def total(self) -> Decimal:
        return (self.preco_unitario * self.quantidade).quantize(Decimal("0.01"))

    def __str__(self):
        return f"{self.quantidade} x {self.nome}"
