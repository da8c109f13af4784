# fiscal/serializers_cancelamento.py

from rest_framework import serializers

from fiscal.services.cancelamento_service import MOTIVO_MAX, MOTIVO_MIN


class CancelarNfceInputSerializer(serializers.Serializer):
    motivo = serializers.CharField(
        required=True,
        help_text="Justificativa do cancelamento (xJust), exigida pela SEFAZ.",
    )

    def validate_motivo(self, value):
        motivo = (value or "").strip()
        if len(motivo) < MOTIVO_MIN:
            raise serializers.ValidationError(
                f"Motivo de cancelamento muito curto (mínimo {MOTIVO_MIN} caracteres)."
            )
        if len(motivo) > MOTIVO_MAX:
            raise serializers.ValidationError(
                f"Motivo de cancelamento muito longo (máximo {MOTIVO_MAX} caracteres)."
            )
        return motivo


class CancelarNfceOutputSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    cupom_id = serializers.UUIDField()
    status = serializers.CharField()
    motivo = serializers.CharField()
    codigo_status = serializers.CharField()
    protocolo = serializers.CharField(allow_null=True)
