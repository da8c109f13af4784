# fiscal/views/nfce_consulta_views.py

import logging
from dataclasses import asdict

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import APIException
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from fiscal.exceptions import FiscalError
from fiscal.serializers_consulta import ConsultarNfceOutputSerializer
from fiscal.services.consulta_service import consultar_nfce

logger = logging.getLogger("pdv.fiscal")


@extend_schema(request=None, responses={200: ConsultarNfceOutputSerializer})
@api_view(["POST"])
@permission_classes([IsAuthenticated])
def consultar_nfce_view(request, cupom_id):
    """
    POST /api/v1/fiscal/nfce/<cupom_id>/consultar/

    Reconsulta a SEFAZ e reconcilia o status gravado.
    """
    user = request.user
    base_extra = {
        "event": "nfce_consultar",
        "user_id": getattr(user, "id", None),
        "cupom_id": str(cupom_id),
    }

    try:
        result = consultar_nfce(user=user, cupom_id=cupom_id)
        return Response(ConsultarNfceOutputSerializer(asdict(result)).data, status=status.HTTP_200_OK)

    except FiscalError as exc:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "nfce_consultar_erro_fiscal",
            extra={**base_extra, "code": exc.codigo, "detail": exc.message, "outcome": "fiscal_error"},
        )
        raise

    except APIException:
        raise

    except Exception as exc:
        logger.exception("nfce_consultar_erro", extra={**base_extra, "error": str(exc)})
        raise APIException(
            detail={
                "code": "FISCAL_5999",
                "message": "Erro ao consultar NFC-e na SEFAZ.",
            }
        ) from exc
