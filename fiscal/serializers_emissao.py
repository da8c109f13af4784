# fiscal/serializers_emissao.py

import re

from rest_framework import serializers


class ConsumidorSerializer(serializers.Serializer):
    """
    Identificação opcional do consumidor (grupo <dest> do XML).
    """

    nome = serializers.CharField(required=False, allow_blank=True, max_length=60)
    cpf_cnpj = serializers.CharField(
        required=False,
        allow_blank=True,
        help_text="CPF (11 dígitos) ou CNPJ (14 dígitos); pontuação é ignorada.",
    )
    email = serializers.EmailField(required=False, allow_blank=True)

    def validate_cpf_cnpj(self, value):
        digitos = re.sub(r"\D", "", value or "")
        if digitos and len(digitos) not in (11, 14):
            raise serializers.ValidationError("CPF/CNPJ deve ter 11 ou 14 dígitos.")
        return digitos


class EmitirNfceInputSerializer(serializers.Serializer):
    pedido_id = serializers.UUIDField()
    consumidor = ConsumidorSerializer(required=False)
    observacoes = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=2000,
        help_text="Informações complementares impressas no DANFE (infCpl).",
    )


class EmitirNfceOutputSerializer(serializers.Serializer):
    """
    success=True somente para NFC-e autorizada. Rejeição volta aqui também,
    com status 'rejected' e o motivo da SEFAZ.
    """

    success = serializers.BooleanField()
    cupom_id = serializers.UUIDField()
    numero = serializers.IntegerField()
    serie = serializers.IntegerField()
    chave_acesso = serializers.CharField()
    status = serializers.CharField()
    protocolo = serializers.CharField(allow_null=True)
    codigo_status = serializers.CharField(allow_null=True)
    motivo = serializers.CharField(allow_null=True)
    qr_code_url = serializers.CharField(allow_null=True)
