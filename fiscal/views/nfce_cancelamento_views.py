# fiscal/views/nfce_cancelamento_views.py

import logging
from dataclasses import asdict

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import APIException
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from fiscal.exceptions import FiscalError
from fiscal.serializers_cancelamento import (
    CancelarNfceInputSerializer,
    CancelarNfceOutputSerializer,
)
from fiscal.services.cancelamento_service import cancelar_nfce

logger = logging.getLogger("pdv.fiscal")


@extend_schema(request=CancelarNfceInputSerializer, responses={200: CancelarNfceOutputSerializer})
@api_view(["POST"])
@permission_classes([IsAuthenticated])
def cancelar_nfce_view(request, cupom_id):
    """
    Endpoint HTTP para cancelamento de NFC-e.

    URL final:
        POST /api/v1/fiscal/nfce/<cupom_id>/cancelar/

    Só documentos autorizados; qualquer outro status responde 409 sem
    chamar a SEFAZ.
    """
    user = request.user
    base_extra = {
        "event": "nfce_cancelar",
        "user_id": getattr(user, "id", None),
        "cupom_id": str(cupom_id),
    }

    try:
        ser_in = CancelarNfceInputSerializer(data=request.data)
        ser_in.is_valid(raise_exception=True)

        result = cancelar_nfce(
            user=user,
            cupom_id=cupom_id,
            motivo=ser_in.validated_data["motivo"],
        )

        ser_out = CancelarNfceOutputSerializer(asdict(result))

        logger.info(
            "nfce_cancelar_api",
            extra={
                **base_extra,
                "status": result.status,
                "codigo_status": result.codigo_status,
                "outcome": "success" if result.success else "failure",
            },
        )
        return Response(ser_out.data, status=status.HTTP_200_OK)

    except DRFValidationError as exc:
        logger.warning(
            "nfce_cancelar_validacao",
            extra={**base_extra, "errors": exc.detail, "outcome": "validation_error"},
        )
        raise

    except FiscalError as exc:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "nfce_cancelar_erro_fiscal",
            extra={**base_extra, "code": exc.codigo, "detail": exc.message, "outcome": "fiscal_error"},
        )
        raise

    except APIException as exc:
        logger.error(
            "nfce_cancelar_api_exception",
            extra={**base_extra, "detail": str(exc.detail), "outcome": "api_exception"},
        )
        raise

    except Exception as exc:
        logger.exception("nfce_cancelar_erro", extra={**base_extra, "error": str(exc)})
        raise APIException(
            detail={
                "code": "FISCAL_5999",
                "message": "Erro ao comunicar com a SEFAZ para cancelamento.",
            }
        ) from exc
