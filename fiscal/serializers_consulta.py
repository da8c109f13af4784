# fiscal/serializers_consulta.py

from rest_framework import serializers


class ConsultarNfceOutputSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    cupom_id = serializers.UUIDField()
    status = serializers.CharField()
    protocolo = serializers.CharField(allow_null=True)
    motivo = serializers.CharField()
    codigo_status = serializers.CharField()


class XmlNfceOutputSerializer(serializers.Serializer):
    xml = serializers.CharField()
