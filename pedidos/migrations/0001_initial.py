import decimal
import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Pedido",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("total", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=12)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="pedidos",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "pedido",
                "indexes": [models.Index(fields=["owner", "created_at"], name="pedido_owner_created_idx")],
            },
        ),
        migrations.CreateModel(
            name="PedidoItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("posicao", models.PositiveIntegerField(default=0)),
                ("produto_id", models.CharField(blank=True, max_length=64, null=True)),
                ("nome", models.CharField(max_length=120)),
                ("preco_unitario", models.DecimalField(decimal_places=2, max_digits=12)),
                ("quantidade", models.DecimalField(decimal_places=3, default=decimal.Decimal("1.000"), max_digits=12)),
                (
                    "pedido",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="itens",
                        to="pedidos.pedido",
                    ),
                ),
            ],
            options={
                "db_table": "pedido_item",
                "ordering": ["posicao", "id"],
            },
        ),
    ]
