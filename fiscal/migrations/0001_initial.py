import decimal
import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("pedidos", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ConfiguracaoFiscal",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "cnpj",
                    models.CharField(
                        help_text="CNPJ do emitente (somente números, 14 dígitos).",
                        max_length=14,
                        validators=[
                            django.core.validators.MinLengthValidator(14),
                            django.core.validators.RegexValidator("^\\d+$", "Informe somente números."),
                        ],
                    ),
                ),
                ("inscricao_estadual", models.CharField(help_text="Inscrição Estadual (IE).", max_length=14)),
                ("inscricao_municipal", models.CharField(blank=True, max_length=15, null=True)),
                ("razao_social", models.CharField(help_text="Razão social (xNome).", max_length=120)),
                ("nome_fantasia", models.CharField(blank=True, help_text="Nome fantasia (xFant).", max_length=120, null=True)),
                ("logradouro", models.CharField(max_length=120)),
                ("numero_endereco", models.CharField(default="S/N", max_length=20)),
                ("complemento", models.CharField(blank=True, max_length=60, null=True)),
                ("bairro", models.CharField(max_length=60)),
                (
                    "codigo_municipio",
                    models.CharField(
                        help_text="Código IBGE do município (7 dígitos).",
                        max_length=7,
                        validators=[
                            django.core.validators.MinLengthValidator(7),
                            django.core.validators.RegexValidator("^\\d+$", "Informe somente números."),
                        ],
                    ),
                ),
                ("municipio", models.CharField(max_length=60)),
                ("uf", models.CharField(max_length=2)),
                (
                    "cep",
                    models.CharField(
                        max_length=8,
                        validators=[django.core.validators.RegexValidator("^\\d+$", "Informe somente números.")],
                    ),
                ),
                ("telefone", models.CharField(blank=True, max_length=14, null=True)),
                ("nfce_serie", models.PositiveIntegerField(default=1)),
                ("nfce_proximo_numero", models.PositiveIntegerField(default=1)),
                ("certificado_pfx", models.BinaryField(blank=True, editable=False, null=True)),
                ("certificado_senha", models.TextField(blank=True, editable=False, null=True)),
                (
                    "ambiente",
                    models.CharField(
                        choices=[("production", "Produção"), ("staging", "Homologação")],
                        default="staging",
                        max_length=20,
                    ),
                ),
                (
                    "regime_tributario",
                    models.CharField(
                        choices=[
                            ("1", "Simples Nacional"),
                            ("2", "Simples Nacional - excesso de sublimite"),
                            ("3", "Regime Normal"),
                        ],
                        default="1",
                        max_length=1,
                    ),
                ),
                ("csc_id", models.CharField(blank=True, max_length=10, null=True)),
                ("csc_token", models.CharField(blank=True, max_length=64, null=True)),
                ("ativo", models.BooleanField(db_index=True, default=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="configuracoes_fiscais",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "fiscal_configuracao",
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("ativo", True)),
                        fields=("owner",),
                        name="fiscal_configuracao_ativa_por_owner",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="NfceCupom",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("numero", models.PositiveIntegerField()),
                ("serie", models.PositiveIntegerField()),
                ("chave_acesso", models.CharField(max_length=44, unique=True)),
                ("codigo_numerico", models.CharField(help_text="cNF: código numérico aleatório de 8 dígitos.", max_length=8)),
                ("valor_total", models.DecimalField(decimal_places=2, max_digits=12)),
                ("valor_desconto", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=12)),
                (
                    "valor_tributos",
                    models.DecimalField(
                        decimal_places=2,
                        default=decimal.Decimal("0.00"),
                        help_text="Valor aproximado dos tributos (vTotTrib).",
                        max_digits=12,
                    ),
                ),
                ("consumidor_nome", models.CharField(blank=True, max_length=60, null=True)),
                ("consumidor_cpf_cnpj", models.CharField(blank=True, max_length=14, null=True)),
                ("consumidor_email", models.EmailField(blank=True, max_length=254, null=True)),
                ("observacoes", models.TextField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pendente"),
                            ("authorized", "Autorizada"),
                            ("rejected", "Rejeitada"),
                            ("canceled", "Cancelada"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("codigo_status", models.CharField(blank=True, help_text="Último cStat recebido.", max_length=3, null=True)),
                ("protocolo_autorizacao", models.CharField(blank=True, max_length=20, null=True)),
                ("data_hora_autorizacao", models.DateTimeField(blank=True, null=True)),
                ("motivo_rejeicao", models.TextField(blank=True, null=True)),
                ("xml_content", models.TextField(blank=True, null=True)),
                ("xml_autorizado", models.TextField(blank=True, null=True)),
                ("qr_code_url", models.TextField(blank=True, null=True)),
                ("protocolo_cancelamento", models.CharField(blank=True, max_length=20, null=True)),
                ("motivo_cancelamento", models.CharField(blank=True, max_length=255, null=True)),
                ("data_hora_cancelamento", models.DateTimeField(blank=True, null=True)),
                ("ambiente", models.CharField(max_length=20)),
                ("uf", models.CharField(max_length=2)),
                ("data_hora_emissao", models.DateTimeField(default=django.utils.timezone.now)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "configuracao",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="cupons",
                        to="fiscal.configuracaofiscal",
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="nfce_cupons",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "pedido",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="nfce_cupons",
                        to="pedidos.pedido",
                    ),
                ),
            ],
            options={
                "db_table": "nfce_cupom",
                "indexes": [
                    models.Index(fields=["owner", "status"], name="nfce_cupom_owner_status_idx"),
                    models.Index(fields=["pedido"], name="nfce_cupom_pedido_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("configuracao", "serie", "numero"),
                        name="nfce_cupom_numero_unico_por_serie",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="NfceItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("numero_item", models.PositiveIntegerField()),
                ("produto_id", models.CharField(blank=True, max_length=64, null=True)),
                ("codigo_produto", models.CharField(max_length=60)),
                ("descricao", models.CharField(max_length=120)),
                ("ncm", models.CharField(max_length=8)),
                ("cfop", models.CharField(max_length=4)),
                ("unidade", models.CharField(max_length=6)),
                ("quantidade", models.DecimalField(decimal_places=3, max_digits=12)),
                ("valor_unitario", models.DecimalField(decimal_places=2, max_digits=12)),
                ("valor_total", models.DecimalField(decimal_places=2, max_digits=12)),
                ("valor_desconto", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=12)),
                ("cst_icms", models.CharField(help_text="CSOSN (Simples Nacional).", max_length=3)),
                ("aliquota_icms", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=5)),
                ("valor_icms", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=12)),
                ("cst_pis", models.CharField(max_length=2)),
                ("aliquota_pis", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=5)),
                ("valor_pis", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=12)),
                ("cst_cofins", models.CharField(max_length=2)),
                ("aliquota_cofins", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=5)),
                ("valor_cofins", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=12)),
                (
                    "cupom",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="itens",
                        to="fiscal.nfcecupom",
                    ),
                ),
            ],
            options={
                "db_table": "nfce_item",
                "ordering": ["numero_item"],
                "constraints": [
                    models.UniqueConstraint(fields=("cupom", "numero_item"), name="nfce_item_numero_unico")
                ],
            },
        ),
        migrations.CreateModel(
            name="NfceTransmissao",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "tipo_operacao",
                    models.CharField(
                        choices=[("emissao", "Emissão"), ("consulta", "Consulta"), ("cancelamento", "Cancelamento")],
                        max_length=20,
                    ),
                ),
                ("xml_enviado", models.TextField(blank=True, null=True)),
                ("xml_retorno", models.TextField(blank=True, null=True)),
                ("codigo_status", models.CharField(blank=True, max_length=3, null=True)),
                ("motivo", models.TextField(blank=True, null=True)),
                ("protocolo", models.CharField(blank=True, max_length=20, null=True)),
                ("sucesso", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "cupom",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transmissoes",
                        to="fiscal.nfcecupom",
                    ),
                ),
            ],
            options={
                "db_table": "nfce_transmissao",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["cupom", "tipo_operacao"], name="nfce_transm_cupom_tipo_idx"),
                ],
            },
        ),
    ]
