# fiscal/views/nfce_emissao_views.py

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
from fiscal.serializers_emissao import EmitirNfceInputSerializer, EmitirNfceOutputSerializer
from fiscal.services.emissao_service import emitir_nfce

logger = logging.getLogger("pdv.fiscal")


@extend_schema(request=EmitirNfceInputSerializer, responses={201: EmitirNfceOutputSerializer})
@api_view(["POST"])
@permission_classes([IsAuthenticated])
def emitir_nfce_view(request):
    """
    Endpoint HTTP para emissão de NFC-e a partir de um pedido.

    URL final:
        POST /api/v1/fiscal/nfce/emitir/

    Fluxo:
      1) Valida payload com EmitirNfceInputSerializer.
      2) Chama fiscal.services.emissao_service.emitir_nfce.
      3) Retorna 201 com EmitirNfceOutputSerializer, autorizada ou rejeitada
         (rejeição da SEFAZ é desfecho de negócio, não erro HTTP).
    """
    user = request.user
    base_extra = {"event": "nfce_emitir", "user_id": getattr(user, "id", None)}

    try:
        ser_in = EmitirNfceInputSerializer(data=request.data)
        ser_in.is_valid(raise_exception=True)
        data = ser_in.validated_data

        result = emitir_nfce(
            user=user,
            pedido_id=data["pedido_id"],
            consumidor=data.get("consumidor"),
            observacoes=data.get("observacoes"),
        )

        ser_out = EmitirNfceOutputSerializer(asdict(result))

        logger.info(
            "nfce_emitir_api",
            extra={
                **base_extra,
                "cupom_id": result.cupom_id,
                "chave_acesso": result.chave_acesso,
                "status": result.status,
                "outcome": "success" if result.success else "rejected",
            },
        )
        return Response(ser_out.data, status=status.HTTP_201_CREATED)

    except DRFValidationError as exc:
        logger.warning(
            "nfce_emitir_validacao",
            extra={**base_extra, "errors": exc.detail, "outcome": "validation_error"},
        )
        raise

    except FiscalError as exc:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "nfce_emitir_erro_fiscal",
            extra={**base_extra, "code": exc.codigo, "detail": exc.message, "outcome": "fiscal_error"},
        )
        raise

    except APIException as exc:
        logger.error(
            "nfce_emitir_api_exception",
            extra={**base_extra, "detail": str(exc.detail), "outcome": "api_exception"},
        )
        raise

    except Exception as exc:
        logger.exception("nfce_emitir_erro", extra={**base_extra, "error": str(exc)})
        raise APIException(
            detail={
                "code": "FISCAL_5999",
                "message": "Erro inesperado ao emitir NFC-e.",
            }
        ) from exc
